"""API routers package."""

from .customers import router as customers_router
from .metrics import router as metrics_router
from .products import router as products_router
from .system import router as system_router

__all__ = [
    "customers_router",
    "metrics_router",
    "products_router",
    "system_router",
]
