from fastapi import APIRouter, Depends, Query, Request, status
from typing import Any, Dict, Optional

from ..services import Services
from ..utils.api_shapes import success as _success


def get_services(request: Request) -> Services:
    """Services wired at startup (see main.lifespan)."""
    return request.app.state.services


router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: Dict[str, Any],
    services: Services = Depends(get_services),
):
    customer = await services.customers.create_customer(payload)
    return _success({
        "message": "Customer created successfully",
        "customer": customer.model_dump(mode="json"),
    })


@router.get("/all")
async def list_customers(services: Services = Depends(get_services)):
    customers = await services.customers.list_customers()
    return _success({
        "message": f"Successfully retrieved {len(customers)} customers",
        "customers": [c.model_dump(mode="json") for c in customers],
    }, count=len(customers))


@router.get("/search")
async def search_customer(
    type_: Optional[str] = Query(None, alias="type"),
    value: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    customer = await services.lookup.find_customer(type_, value)
    return _success({"customer": customer.model_dump(mode="json")})


@router.put("/{customer_id}")
async def update_customer(
    customer_id: int,
    payload: Dict[str, Any],
    services: Services = Depends(get_services),
):
    customer = await services.customers.update_customer(customer_id, payload)
    return _success({
        "message": "Customer updated successfully",
        "customer": customer.model_dump(mode="json"),
    })


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    services: Services = Depends(get_services),
):
    await services.customers.delete_customer(customer_id)
    return _success({
        "message": f"Customer ID {customer_id} and associated products deleted successfully",
    })
