"""Database engine, sessions and transaction management."""

from .async_db import (
    AsyncSessionFactory,
    build_engine,
    check_database_health,
    create_async_db_and_tables,
    engine,
    get_async_db,
)
from .transaction import SQLAlchemyTransactionManager

__all__ = [
    "engine",
    "build_engine",
    "AsyncSessionFactory",
    "get_async_db",
    "create_async_db_and_tables",
    "check_database_health",
    "SQLAlchemyTransactionManager",
]
