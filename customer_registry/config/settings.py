"""Application settings module.

Provides centralized configuration using environment variables with sane defaults.
Pool defaults allow 25 open connections (5 persistent + 20 overflow); callers block
for up to ``DATABASE_POOL_TIMEOUT`` seconds when the pool is exhausted.
"""
from __future__ import annotations

from functools import lru_cache
import os
from typing import List

from pydantic import BaseModel


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    if _get_bool("TESTING", False):
        return "sqlite+aiosqlite:///./test.db"
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    database = os.getenv("DB_NAME", "customer_registry")
    username = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "postgres")
    return f"postgresql+asyncpg://{username}:{password}@{host}:{port}/{database}"


class Settings(BaseModel):
    # Relational store
    DATABASE_URL: str = "sqlite+aiosqlite:///./test.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 300

    # Startup connectivity retry (exponential backoff)
    DB_CONNECT_ATTEMPTS: int = 10
    DB_CONNECT_INITIAL_DELAY: float = 1.0
    DB_CONNECT_MAX_DELAY: float = 8.0

    # Cache
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SECONDS: int = 3600
    CACHE_KEY_PREFIX: str = "customer"

    # Customer id allocation
    ID_GENERATION_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment with type coercion and defaults."""
        origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
        return cls(
            DATABASE_URL=os.getenv("DATABASE_URL") or _default_database_url(),
            DATABASE_ECHO=_get_bool("DATABASE_ECHO", False),
            DATABASE_POOL_SIZE=_get_int("DATABASE_POOL_SIZE", 5),
            DATABASE_MAX_OVERFLOW=_get_int("DATABASE_MAX_OVERFLOW", 20),
            DATABASE_POOL_TIMEOUT=_get_int("DATABASE_POOL_TIMEOUT", 30),
            DATABASE_POOL_RECYCLE=_get_int("DATABASE_POOL_RECYCLE", 300),
            DB_CONNECT_ATTEMPTS=_get_int("DB_CONNECT_ATTEMPTS", 10),
            DB_CONNECT_INITIAL_DELAY=_get_float("DB_CONNECT_INITIAL_DELAY", 1.0),
            DB_CONNECT_MAX_DELAY=_get_float("DB_CONNECT_MAX_DELAY", 8.0),
            REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            CACHE_TTL_SECONDS=_get_int("CACHE_TTL_SECONDS", 3600),
            CACHE_KEY_PREFIX=os.getenv("CACHE_KEY_PREFIX", "customer"),
            ID_GENERATION_ATTEMPTS=_get_int("ID_GENERATION_ATTEMPTS", 5),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            CORS_ALLOW_ORIGINS=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings.load()


__all__ = ["Settings", "get_settings"]
