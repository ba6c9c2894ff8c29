"""Alembic environment script.

Only model metadata and a database URL are needed here; the runtime engine
module is not imported. The URL is resolved from environment variables with
the following precedence:

1. DB_URL
2. DATABASE_URL
3. sqlalchemy.url from alembic.ini
4. Built-in default (local Postgres)

Async driver URLs (postgresql+asyncpg://, sqlite+aiosqlite://) are converted
to their synchronous counterparts for Alembic operations.
"""
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from customer_registry.models.database import Base

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

SYNC_DRIVERS = {
    "postgresql+asyncpg://": "postgresql+psycopg://",
    "sqlite+aiosqlite://": "sqlite://",
}


def _resolve_url() -> str:
    env_override = os.getenv('DB_URL') or os.getenv('DATABASE_URL')
    if env_override:
        raw_url = env_override
    else:
        ini_url = config.get_main_option('sqlalchemy.url')
        if ini_url:
            raw_url = ini_url
        else:
            user = os.getenv('DB_USER', 'postgres')
            password = os.getenv('DB_PASSWORD', 'postgres')
            host = os.getenv('DB_HOST', 'localhost')
            port = os.getenv('DB_PORT', '5432')
            name = os.getenv('DB_NAME', 'customer_registry')
            raw_url = f'postgresql+psycopg://{user}:{password}@{host}:{port}/{name}'
    for async_prefix, sync_prefix in SYNC_DRIVERS.items():
        if raw_url.startswith(async_prefix):
            raw_url = raw_url.replace(async_prefix, sync_prefix, 1)
    return raw_url


config.set_main_option('sqlalchemy.url', _resolve_url())


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix='sqlalchemy.',
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
