"""Test configuration and fixtures.

Every test gets its own SQLite database file (foreign keys enforced through
the engine's connect hook) and its own in-memory fakeredis server, so no
state leaks between tests and no external services are required.

Environment Variables:
    TESTING=true      -> module-level settings resolve to a local SQLite URL
"""

import os
from typing import AsyncGenerator

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Flag test mode early (before the application module builds its settings)
os.environ.setdefault("TESTING", "true")

from customer_registry.config.database import (  # noqa: E402
    DatabaseConfig,
    build_engine,
    build_session_factory,
    create_database_tables,
)
from customer_registry.config.settings import Settings  # noqa: E402
from customer_registry.main import create_application, wire_application  # noqa: E402
from customer_registry.services import build_services  # noqa: E402


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")


@pytest_asyncio.fixture
async def engine(settings: Settings):
    engine = build_engine(DatabaseConfig(settings))
    await create_database_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server: fakeredis.FakeServer):
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    yield client
    await client.aclose()


@pytest.fixture
def services(session_factory, redis_client, settings: Settings):
    return build_services(session_factory, redis_client, settings)


@pytest_asyncio.fixture
async def app_client(settings: Settings, engine, redis_client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an application wired to the per-test store and cache."""
    app = create_application(settings)
    wire_application(app, engine, redis_client, settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def jane_doe() -> dict:
    return {
        "name": "Jane Doe",
        "age": 34,
        "address": "12 MG Road, Bengaluru",
        "phone_number": "9876543210",
        "email": "jane@example.com",
        "aadhar_id": "123456789012",
    }
