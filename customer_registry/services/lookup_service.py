"""Customer lookup by any identifier: cache first, store on miss."""
from __future__ import annotations

import logging
from typing import Optional

from ..models.schemas import CustomerRecord, LookupKey
from ..utils.errors import NotFound, ValidationError
from .customer_cache import CustomerCache
from .customer_store import CustomerStore

logger = logging.getLogger(__name__)


def parse_lookup_key(raw: Optional[str]) -> LookupKey:
    key = LookupKey.parse(raw) if raw else None
    if key is None:
        raise ValidationError(
            "Invalid ID type. Use: customer_id, aadhar, passport, or driving_license")
    return key


class LookupService:
    def __init__(self, store: CustomerStore, cache: CustomerCache):
        self._store = store
        self._cache = cache

    async def find_customer(self, key_type: str | LookupKey, value: str) -> CustomerRecord:
        """Resolve a customer by identifier type and value.

        A cache hit returns without touching the store; a store hit is written
        back to the cache under all of the customer's identifiers.
        """
        if not key_type or value is None or not str(value).strip():
            raise ValidationError("ID type and value are required")
        key = key_type if isinstance(key_type, LookupKey) else parse_lookup_key(key_type)
        value = str(value).strip()

        cached = await self._cache.get(key, value)
        if cached is not None:
            return cached

        record = await self._store.get_customer(key, value)
        if record is None:
            raise NotFound("Customer not found")
        await self._cache.put(record)
        return record
