"""Cache-aside copies of customer records in Redis.

A record is stored once per identifier it carries, under
``<prefix>:<key type>:<value>`` (e.g. ``customer:aadhar:123456789012``), and
every entry expires after a fixed TTL. The cache is never authoritative:
each operation is best effort, and Redis failures are logged and swallowed.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from prometheus_client import Counter
from pydantic import ValidationError as PayloadError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..models.schemas import CustomerRecord, IdentifierSnapshot, LookupKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
CACHE_ERRORS = (RedisError, OSError)

CACHE_HITS = Counter("customer_cache_hits_total", "Customer cache hits")
CACHE_MISSES = Counter("customer_cache_misses_total", "Customer cache misses")
CACHE_ERRORS_TOTAL = Counter(
    "customer_cache_errors_total",
    "Customer cache operations that failed and were ignored",
    ["operation"],
)


class CustomerCache:
    def __init__(self, client: Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS, key_prefix: str = "customer"):
        self._client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def key_for(self, key: LookupKey, value: object) -> str:
        return f"{self.key_prefix}:{key.value}:{value}"

    def _keys(self, snapshot: IdentifierSnapshot) -> List[str]:
        return [self.key_for(key, value) for key, value in snapshot.keys().items()]

    def _failed(self, operation: str, exc: BaseException) -> None:
        CACHE_ERRORS_TOTAL.labels(operation).inc()
        logger.warning("Cache %s failed: %s", operation, exc)

    async def put(self, customer: CustomerRecord) -> None:
        """Write the record under every identifier it carries, overwriting older copies."""
        payload = customer.model_dump_json()
        try:
            async with self._client.pipeline(transaction=False) as pipe:
                for key in self._keys(customer.identifiers()):
                    pipe.set(key, payload, ex=self.ttl_seconds)
                await pipe.execute()
        except CACHE_ERRORS as exc:
            self._failed("put", exc)

    async def get(self, key: LookupKey, value: object) -> Optional[CustomerRecord]:
        """Return the cached record or None on a miss (errors count as misses)."""
        cache_key = self.key_for(key, value)
        try:
            raw = await self._client.get(cache_key)
        except CACHE_ERRORS as exc:
            self._failed("get", exc)
            return None
        if raw is None:
            CACHE_MISSES.inc()
            return None
        try:
            record = CustomerRecord.model_validate_json(raw)
        except PayloadError as exc:
            # Unreadable entry; drop it so the next read repopulates from the store
            self._failed("decode", exc)
            await self._delete([cache_key])
            return None
        CACHE_HITS.inc()
        return record

    async def invalidate(
        self,
        customer_id: int,
        aadhar_id: Optional[str] = None,
        passport_id: Optional[str] = None,
        driving_license_id: Optional[str] = None,
    ) -> None:
        """Remove entries under every key valid for the given identifier values.

        Callers must pass the values the customer had *before* the mutation;
        the cache cannot discover stale keys from the updated record.
        """
        await self.invalidate_snapshot(IdentifierSnapshot(
            customer_id=customer_id,
            aadhar_id=aadhar_id,
            passport_id=passport_id,
            driving_license_id=driving_license_id,
        ))

    async def invalidate_snapshot(self, snapshot: IdentifierSnapshot) -> None:
        await self._delete(self._keys(snapshot))

    async def _delete(self, keys: List[str]) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except CACHE_ERRORS as exc:
            self._failed("delete", exc)

    async def clear(self) -> int:
        """Drop every customer entry; returns the number of keys removed."""
        removed = 0
        batch: List[bytes] = []
        try:
            async for key in self._client.scan_iter(match=f"{self.key_prefix}:*", count=500):
                batch.append(key)
                if len(batch) >= 500:
                    removed += await self._client.delete(*batch)
                    batch = []
            if batch:
                removed += await self._client.delete(*batch)
        except CACHE_ERRORS as exc:
            self._failed("clear", exc)
        return removed
