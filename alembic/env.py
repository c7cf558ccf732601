"""
Alembic environment configuration for ResetGate's database migrations.

Connects with the application's async driver (asyncpg or aiosqlite) using
settings.DATABASE_URL and targets the SQLModel metadata.
"""
import asyncio  # Async engine support
import os  # For path manipulation
import sys  # For modifying sys.path
from logging.config import fileConfig  # For configuring logging

from alembic import context  # For migration context
from sqlalchemy import pool  # For database connection
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

# Add project root to sys.path to resolve src/ imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from sqlmodel import SQLModel  # noqa: E402

import src.domain.entities  # noqa: E402,F401  registers every table
from src.core.config.settings import settings  # noqa: E402

config = context.config

# Same URL as the application
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode, generating SQL scripts without a database connection.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",  # SQLite cannot ALTER most constraints
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """
    Run migrations in 'online' mode, connecting to the database.

    Uses a non-pooled connection to avoid conflicts during migrations.
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
