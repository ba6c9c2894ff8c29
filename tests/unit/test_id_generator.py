import random

import pytest

from customer_registry.models.database import Customer
from customer_registry.services.id_generator import (
    MAX_CUSTOMER_ID,
    MIN_CUSTOMER_ID,
    AttemptBudget,
    IdGenerator,
    is_customer_id,
)
from customer_registry.utils.errors import IDSpaceExhausted

pytestmark = [pytest.mark.unit]


class ScriptedRandom(random.Random):
    """Random source that replays fixed candidates."""

    def __init__(self, values):
        super().__init__()
        self.values = list(values)
        self.calls = 0

    def randint(self, a, b):
        self.calls += 1
        return self.values.pop(0) if len(self.values) > 1 else self.values[0]


async def _seed_customer(session_factory, customer_id: int) -> None:
    async with session_factory() as session:
        session.add(Customer(customer_id=customer_id, name="Taken", age=40,
                             address="1 Main St", aadhar_id=f"A{customer_id}"))
        await session.commit()


def test_candidates_are_ten_digit_numbers():
    generator = IdGenerator(rng=random.Random(42))
    for _ in range(200):
        candidate = generator.candidate()
        assert MIN_CUSTOMER_ID <= candidate <= MAX_CUSTOMER_ID
        assert len(str(candidate)) == 10


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        IdGenerator(max_attempts=0)


@pytest.mark.asyncio
async def test_generate_returns_unused_candidate(session_factory):
    generator = IdGenerator(rng=ScriptedRandom([4321098765]))
    async with session_factory() as session:
        assert await generator.generate(session) == 4321098765


@pytest.mark.asyncio
async def test_generate_skips_taken_candidates(session_factory):
    await _seed_customer(session_factory, 1111111111)
    rng = ScriptedRandom([1111111111, 1111111111, 2222222222])
    generator = IdGenerator(rng=rng)
    async with session_factory() as session:
        assert await generator.generate(session) == 2222222222
    assert rng.calls == 3


@pytest.mark.asyncio
async def test_generate_gives_up_after_max_attempts(session_factory):
    await _seed_customer(session_factory, 1111111111)
    rng = ScriptedRandom([1111111111])
    generator = IdGenerator(max_attempts=5, rng=rng)
    async with session_factory() as session:
        with pytest.raises(IDSpaceExhausted) as exc:
            await generator.generate(session)
    assert rng.calls == 5
    assert exc.value.message == "Failed to generate unique customer ID after 5 attempts"


@pytest.mark.asyncio
async def test_generate_draws_from_a_shared_budget(session_factory):
    await _seed_customer(session_factory, 1111111111)
    rng = ScriptedRandom([1111111111])
    generator = IdGenerator(max_attempts=5, rng=rng)
    budget = generator.new_budget()
    budget.take()
    budget.take()
    async with session_factory() as session:
        with pytest.raises(IDSpaceExhausted) as exc:
            await generator.generate(session, budget)
    assert rng.calls == 3
    assert budget.remaining == 0
    assert exc.value.attempts == 5


def test_spent_budget_refuses_more_attempts():
    budget = AttemptBudget(2)
    assert budget.take() == 1
    assert budget.take() == 2
    with pytest.raises(IDSpaceExhausted):
        budget.take()


def test_customer_id_range():
    assert is_customer_id(MIN_CUSTOMER_ID)
    assert is_customer_id(MAX_CUSTOMER_ID)
    assert not is_customer_id(MIN_CUSTOMER_ID - 1)
    assert not is_customer_id(10**20)
