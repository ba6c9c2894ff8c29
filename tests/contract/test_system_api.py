import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.contract]


@pytest.mark.asyncio
async def test_health(app_client: AsyncClient):
    resp = await app_client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_reports_store_and_cache(app_client: AsyncClient):
    resp = await app_client.get("/api/readiness")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["database"]["connection"] is True
    assert data["cache"]["connection"] is True


@pytest.mark.asyncio
async def test_flush_then_everything_is_gone(app_client: AsyncClient, jane_doe):
    created = (await app_client.post("/api/customers", json=jane_doe)).json()["data"]["customer"]
    await app_client.post("/api/products", json={
        "customer_id": created["customer_id"], "product_name": "Laptop", "quantity": 1, "price": 999.99})
    # Warm the cache so the flush has entries to drop
    await app_client.get("/api/customers/search", params={"type": "aadhar", "value": "123456789012"})

    resp = await app_client.post("/api/flush")
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["message"] == "All customer and product data successfully flushed."
    assert data["removed"]["customers"] == 1
    assert data["removed"]["products"] == 1

    assert (await app_client.get("/api/customers/all")).json()["data"]["customers"] == []
    search = await app_client.get("/api/customers/search", params={"type": "aadhar", "value": "123456789012"})
    assert search.status_code == 404

    # Foreign keys are enforced again once the flush has committed
    orphan = await app_client.post("/api/products", json={
        "customer_id": created["customer_id"], "product_name": "Laptop", "quantity": 1, "price": 1.0})
    assert orphan.status_code == 404


@pytest.mark.asyncio
async def test_metrics_exposes_request_and_cache_counters(app_client: AsyncClient):
    await app_client.get("/api/health")
    resp = await app_client.get("/metrics")
    assert resp.status_code == 200
    text = resp.text
    assert "app_requests_total" in text
    assert 'path="/api/health"' in text
    assert "customer_cache_hits_total" in text
