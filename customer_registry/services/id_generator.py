"""Customer identifier allocation.

Identifiers are random 10-digit integers. Each candidate is checked against
the customers table inside the caller's transaction; the primary key
constraint still has the final word at insert time.

One ``AttemptBudget`` covers a whole create: candidates rejected by the
existence check and candidates that collide at insert draw from the same
count, so a create never makes more than ``max_attempts`` draws.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import Customer
from ..utils.errors import IDSpaceExhausted

logger = logging.getLogger(__name__)

MIN_CUSTOMER_ID = 1_000_000_000
MAX_CUSTOMER_ID = 9_999_999_999
DEFAULT_MAX_ATTEMPTS = 5


def is_customer_id(value: int) -> bool:
    """True when ``value`` lies in the range generated ids are drawn from."""
    return MIN_CUSTOMER_ID <= value <= MAX_CUSTOMER_ID


class AttemptBudget:
    """Attempts left for allocating one customer id."""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.used

    def take(self) -> int:
        """Consume one attempt and return its 1-based number."""
        if self.used >= self.limit:
            raise IDSpaceExhausted(self.limit)
        self.used += 1
        return self.used


class IdGenerator:
    """Draws candidate ids and verifies them against the store."""

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, rng: Optional[random.Random] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    def new_budget(self) -> AttemptBudget:
        return AttemptBudget(self.max_attempts)

    def candidate(self) -> int:
        return self._rng.randint(MIN_CUSTOMER_ID, MAX_CUSTOMER_ID)

    async def generate(self, session: AsyncSession, budget: Optional[AttemptBudget] = None) -> int:
        """Return an id not currently assigned, or raise IDSpaceExhausted."""
        budget = budget or self.new_budget()
        while budget.remaining:
            attempt = budget.take()
            candidate = self.candidate()
            taken = await session.scalar(
                select(exists().where(Customer.customer_id == candidate)))
            if not taken:
                return candidate
            logger.info(
                "Generated ID %d already exists (attempt %d/%d). Retrying...",
                candidate, attempt, budget.limit,
            )
        logger.error("Customer ID generation exhausted after %d attempts", budget.limit)
        raise IDSpaceExhausted(budget.limit)
