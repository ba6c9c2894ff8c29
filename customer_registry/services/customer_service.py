"""Customer write path: store mutation first, cache maintenance after commit.

Responsibilities:
- Create: insert, then cache the committed record under all of its identifiers
- Update: invalidate keys from the pre-update snapshot, then cache the new state
- Delete: invalidate keys from the pre-delete snapshot
- Flush: clear the store, then every cached customer entry

Cache steps never fail a request; if the process dies between commit and
cache maintenance, stale entries expire with the TTL.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

import structlog

from ..models.schemas import CustomerRecord, ProductRecord
from .customer_cache import CustomerCache
from .customer_store import CustomerStore

logger = structlog.get_logger(__name__)


class CustomerService:
    def __init__(self, store: CustomerStore, cache: CustomerCache):
        self.store = store
        self.cache = cache

    async def create_customer(self, fields: Mapping[str, Any]) -> CustomerRecord:
        record = await self.store.create_customer(fields)
        await self.cache.put(record)
        logger.info("customer_created", customer_id=record.customer_id)
        return record

    async def update_customer(self, customer_id: int, fields: Mapping[str, Any]) -> CustomerRecord:
        before, after = await self.store.update_customer(customer_id, fields)
        await self.cache.invalidate_snapshot(before)
        await self.cache.put(after)
        logger.info("customer_updated", customer_id=customer_id)
        return after

    async def delete_customer(self, customer_id: int) -> None:
        snapshot = await self.store.delete_customer(customer_id)
        await self.cache.invalidate_snapshot(snapshot)
        logger.info("customer_deleted", customer_id=customer_id)

    async def list_customers(self) -> List[CustomerRecord]:
        return await self.store.list_customers()

    async def add_product(self, fields: Mapping[str, Any]) -> ProductRecord:
        return await self.store.add_product(fields)

    async def list_products(self, customer_id: int) -> List[ProductRecord]:
        return await self.store.list_products(customer_id)

    async def delete_product(self, customer_id: int, product_id: int) -> None:
        await self.store.delete_product(customer_id, product_id)

    async def flush_all(self) -> Dict[str, int]:
        counts = await self.store.flush_all()
        counts["cache_entries"] = await self.cache.clear()
        logger.warning("registry_flushed", **counts)
        return counts
