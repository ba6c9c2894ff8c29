from fastapi import APIRouter, Depends, status
from typing import Any, Dict

from ..services import Services
from ..utils.api_shapes import success as _success
from .customers import get_services

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_product(
    payload: Dict[str, Any],
    services: Services = Depends(get_services),
):
    product = await services.customers.add_product(payload)
    return _success({
        "message": "Product added successfully",
        "product": product.model_dump(mode="json"),
    })


@router.get("/{customer_id}")
async def list_products(
    customer_id: int,
    services: Services = Depends(get_services),
):
    products = await services.customers.list_products(customer_id)
    return _success({"products": [p.model_dump(mode="json") for p in products]}, count=len(products))


@router.delete("/{customer_id}/{product_id}")
async def delete_product(
    customer_id: int,
    product_id: int,
    services: Services = Depends(get_services),
):
    await services.customers.delete_product(customer_id, product_id)
    return _success({
        "message": f"Product ID {product_id} for Customer ID {customer_id} deleted successfully",
    })
