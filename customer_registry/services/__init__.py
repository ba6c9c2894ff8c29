"""Service layer package.

``build_services`` wires the record store, cache and lookup orchestrator from
explicitly supplied collaborators; the application builds them once at startup.
"""
from dataclasses import dataclass

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config.settings import Settings
from .customer_cache import CustomerCache
from .customer_service import CustomerService
from .customer_store import CustomerStore
from .id_generator import IdGenerator
from .lookup_service import LookupService


@dataclass
class Services:
    customers: CustomerService
    lookup: LookupService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    redis_client: Redis,
    settings: Settings,
) -> Services:
    store = CustomerStore(
        session_factory,
        IdGenerator(max_attempts=settings.ID_GENERATION_ATTEMPTS),
    )
    cache = CustomerCache(
        redis_client,
        ttl_seconds=settings.CACHE_TTL_SECONDS,
        key_prefix=settings.CACHE_KEY_PREFIX,
    )
    return Services(
        customers=CustomerService(store, cache),
        lookup=LookupService(store, cache),
    )


__all__ = [
    "Services",
    "build_services",
    "CustomerCache",
    "CustomerService",
    "CustomerStore",
    "IdGenerator",
    "LookupService",
]
