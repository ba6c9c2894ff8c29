"""
FastAPI application factory and configuration.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .config.cache import build_redis_client
from .config.database import DatabaseConfig, build_engine, build_session_factory, connect_with_retry
from .config.logging import bind_request_context, configure_logging
from .config.settings import Settings, get_settings
from .routers import customers_router, metrics_router, products_router, system_router
from .services import build_services
from .utils.errors import ERROR_CODES, DomainError, IDSpaceExhausted, error_payload

logger = logging.getLogger(__name__)

APP_REQUEST_COUNT = Counter(
    "app_requests_total",
    "Total HTTP requests processed",
    ["method", "path", "status"],
)
APP_REQUEST_LATENCY = Histogram(
    "app_request_duration_seconds",
    "Request latency in seconds",
    ["method", "path", "status"],
)

SLOW_RESPONSE_MS = 200


class ResponseTimeMiddleware(BaseHTTPMiddleware):
    """Adds X-Response-Time and records request count/latency metrics."""

    async def dispatch(self, request: Request, call_next):  # noqa: D401
        start_time = time.time()
        response = await call_next(request)
        duration_s = time.time() - start_time
        response_time_ms = duration_s * 1000
        response.headers["X-Response-Time"] = f"{response_time_ms:.1f}ms"

        # Route templates keep label cardinality bounded (no raw customer ids)
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        status = str(response.status_code)
        APP_REQUEST_COUNT.labels(request.method, path, status).inc()
        APP_REQUEST_LATENCY.labels(request.method, path, status).observe(duration_s)

        if response_time_ms > SLOW_RESPONSE_MS:
            logger.info(
                "Slow response: %.1fms for %s %s",
                response_time_ms,
                request.method,
                request.url.path,
            )
        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generate a per-request ID and echo it in the response headers."""

    async def dispatch(self, request: Request, call_next):  # noqa: D401
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def wire_application(app: FastAPI, engine: AsyncEngine, redis_client: Redis, settings: Settings) -> None:
    """Attach the process-wide store and cache handles and the services built on them."""
    app.state.engine = engine
    app.state.redis = redis_client
    app.state.services = build_services(build_session_factory(engine), redis_client, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings: Settings = app.state.settings
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting up Customer Registry API...")

    engine = build_engine(DatabaseConfig(settings))
    try:
        await connect_with_retry(
            engine,
            attempts=settings.DB_CONNECT_ATTEMPTS,
            initial_delay=settings.DB_CONNECT_INITIAL_DELAY,
            max_delay=settings.DB_CONNECT_MAX_DELAY,
        )
    except DomainError:
        await engine.dispose()
        logger.error("Application startup failed: database unreachable")
        raise
    redis_client = build_redis_client(settings)
    wire_application(app, engine, redis_client, settings)
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down Customer Registry API...")
    await redis_client.aclose()
    await engine.dispose()


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()
    application_obj = FastAPI(
        title="Customer Registry",
        description="Customer and product records with a read-through cache",
        version="1.0.0",
        lifespan=lifespan,
    )
    application_obj.state.settings = settings

    setup_middleware(application_obj, settings)
    setup_exception_handlers(application_obj)
    setup_routes(application_obj)
    return application_obj


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Setup application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(ResponseTimeMiddleware)
    app.add_middleware(RequestIDMiddleware)


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup global exception handlers."""

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        if isinstance(exc, IDSpaceExhausted):
            logger.error("Customer id space exhausted: %s", exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.code, exc.message, details=exc.details,
                                  path=str(request.url.path)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors with standardized response."""
        details = [
            {"loc": list(err.get("loc", ())), "msg": str(err.get("msg")), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_payload(ERROR_CODES["validation"], "Request validation failed",
                                  details=details, path=str(request.url.path)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload("HTTP_ERROR", str(exc.detail), path=str(request.url.path)),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Unhandled database error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_payload(ERROR_CODES["db"], "Database error", path=str(request.url.path)),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_payload(ERROR_CODES["internal"], "An unexpected error occurred",
                                  path=str(request.url.path)),
        )


def setup_routes(app: FastAPI) -> None:
    """Setup application routes."""
    app.include_router(system_router)
    app.include_router(customers_router)
    app.include_router(products_router)
    app.include_router(metrics_router)


# Create the application instance
app = create_application()


__all__ = ["app", "create_application", "wire_application"]
