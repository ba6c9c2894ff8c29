"""System router: liveness, readiness and the destructive flush endpoint."""
from fastapi import APIRouter, Depends, Request
import time

from ..config.cache import cache_health_check
from ..config.database import async_database_health_check
from ..services import Services
from ..utils.api_shapes import success as _success
from .customers import get_services

router = APIRouter(prefix="/api")

_start_time = time.time()


@router.get("/health", tags=["System"])  # liveness
async def health():
    return {"status": "healthy"}


@router.get("/readiness", tags=["System"])  # readiness: db + cache connectivity
async def readiness(request: Request):
    db_health = await async_database_health_check(request.app.state.engine)
    cache_health = await cache_health_check(request.app.state.redis)
    return _success({
        "database": db_health,
        "cache": cache_health,
        "uptime_s": int(time.time() - _start_time),
    })


@router.post("/flush", tags=["System"])
async def flush(services: Services = Depends(get_services)):
    counts = await services.customers.flush_all()
    return _success({
        "message": "All customer and product data successfully flushed.",
        "removed": counts,
    })
