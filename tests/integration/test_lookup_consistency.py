"""Cache and store stay in agreement across the customer write path."""
import fakeredis
import pytest

from customer_registry.models.schemas import LookupKey
from customer_registry.services import build_services
from customer_registry.utils.errors import NotFound, ValidationError

pytestmark = [pytest.mark.integration]


@pytest.fixture
def customers(services):
    return services.customers


@pytest.fixture
def lookup(services):
    return services.lookup


@pytest.mark.asyncio
async def test_create_populates_cache(customers, redis_client, jane_doe):
    record = await customers.create_customer(jane_doe)
    assert await redis_client.exists(
        f"customer:customer_id:{record.customer_id}",
        "customer:aadhar:123456789012",
    ) == 2


@pytest.mark.asyncio
async def test_lookup_by_every_identifier(customers, lookup, jane_doe):
    record = await customers.create_customer({**jane_doe, "passport_id": "P1234567",
                                              "driving_license_id": "KA0120230001234"})
    assert await lookup.find_customer("customer_id", str(record.customer_id)) == record
    assert await lookup.find_customer("aadhar", "123456789012") == record
    assert await lookup.find_customer("passport", "P1234567") == record
    assert await lookup.find_customer("driving_license", "KA0120230001234") == record
    assert await lookup.find_customer(LookupKey.AADHAR, " 123456789012 ") == record


@pytest.mark.asyncio
async def test_store_hit_repopulates_cache(customers, lookup, redis_client, jane_doe):
    record = await customers.create_customer({**jane_doe, "passport_id": "P1234567"})
    await redis_client.flushall()

    assert await lookup.find_customer("passport", "P1234567") == record
    keys = sorted(await redis_client.keys("customer:*"))
    assert keys == [
        b"customer:aadhar:123456789012",
        f"customer:customer_id:{record.customer_id}".encode(),
        b"customer:passport:P1234567",
    ]


@pytest.mark.asyncio
async def test_cache_hit_skips_store(customers, lookup, monkeypatch, jane_doe):
    record = await customers.create_customer(jane_doe)

    async def store_must_not_be_called(*args, **kwargs):
        raise AssertionError("store consulted on a cache hit")

    monkeypatch.setattr(customers.store, "get_customer", store_must_not_be_called)
    assert await lookup.find_customer("aadhar", "123456789012") == record


@pytest.mark.asyncio
async def test_invalid_lookup_type(lookup):
    with pytest.raises(ValidationError) as exc:
        await lookup.find_customer("pan_card", "ABCDE1234F")
    assert exc.value.message == "Invalid ID type. Use: customer_id, aadhar, passport, or driving_license"


@pytest.mark.parametrize("key_type,value", [(None, "123"), ("", "123"), ("aadhar", None), ("aadhar", "  ")])
@pytest.mark.asyncio
async def test_lookup_requires_type_and_value(lookup, key_type, value):
    with pytest.raises(ValidationError) as exc:
        await lookup.find_customer(key_type, value)
    assert exc.value.message == "ID type and value are required"


@pytest.mark.asyncio
async def test_unknown_customer(lookup):
    with pytest.raises(NotFound):
        await lookup.find_customer("aadhar", "000000000000")
    with pytest.raises(NotFound):
        await lookup.find_customer("customer_id", "not-a-number")


@pytest.mark.asyncio
async def test_update_with_identifier_change_leaves_no_stale_entries(customers, lookup, jane_doe):
    record = await customers.create_customer(jane_doe)
    # Warm the cache through the read path as well
    await lookup.find_customer("aadhar", "123456789012")

    updated = await customers.update_customer(record.customer_id, {
        **jane_doe, "name": "Jane Smith", "aadhar_id": "999988887777",
    })

    assert (await lookup.find_customer("customer_id", str(record.customer_id))).name == "Jane Smith"
    assert await lookup.find_customer("aadhar", "999988887777") == updated
    with pytest.raises(NotFound):
        await lookup.find_customer("aadhar", "123456789012")


@pytest.mark.asyncio
async def test_delete_invalidates_every_key(customers, lookup, redis_client, jane_doe):
    record = await customers.create_customer({**jane_doe, "passport_id": "P1234567"})
    await lookup.find_customer("passport", "P1234567")

    await customers.delete_customer(record.customer_id)

    assert await redis_client.keys("customer:*") == []
    for key_type, value in (("customer_id", str(record.customer_id)),
                            ("aadhar", "123456789012"),
                            ("passport", "P1234567")):
        with pytest.raises(NotFound):
            await lookup.find_customer(key_type, value)


@pytest.mark.asyncio
async def test_flush_clears_store_and_cache(customers, lookup, redis_client, jane_doe):
    record = await customers.create_customer(jane_doe)
    await customers.add_product(
        {"customer_id": record.customer_id, "product_name": "Laptop", "quantity": 1, "price": 999.99})
    await redis_client.set("session:abc", "keep")

    counts = await customers.flush_all()

    assert counts == {"products": 1, "customers": 1, "cache_entries": 2}
    assert await customers.list_customers() == []
    assert await redis_client.get("session:abc") == b"keep"
    with pytest.raises(NotFound):
        await lookup.find_customer("aadhar", "123456789012")


@pytest.mark.asyncio
async def test_requests_succeed_with_cache_down(session_factory, settings, jane_doe):
    server = fakeredis.FakeServer()
    server.connected = False
    client = fakeredis.FakeAsyncRedis(server=server)
    services = build_services(session_factory, client, settings)

    record = await services.customers.create_customer(jane_doe)
    assert await services.lookup.find_customer("aadhar", "123456789012") == record
    updated = await services.customers.update_customer(record.customer_id, {**jane_doe, "age": 35})
    assert (await services.lookup.find_customer("customer_id", str(record.customer_id))) == updated
    await services.customers.delete_customer(record.customer_id)
    with pytest.raises(NotFound):
        await services.lookup.find_customer("aadhar", "123456789012")
    await client.aclose()
