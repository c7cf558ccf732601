"""
Asynchronous Database Utilities Module

Engine, session factory and startup helpers built on SQLAlchemy's asyncio
support. PostgreSQL is reached through asyncpg; local development and the
test suite use SQLite through aiosqlite.

Key Components:
    - build_engine: Creates an AsyncEngine with driver-appropriate options.
    - engine / AsyncSessionFactory: Application-wide engine and sessions.
    - get_async_db: FastAPI dependency yielding one session per request.
    - create_async_db_and_tables: Creates tables, retried with tenacity.
    - check_database_health: Lightweight connectivity probe.
"""

from typing import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

# Registers the tables on SQLModel.metadata
import src.domain.entities  # noqa: F401
from src.core.config.settings import settings

logger = structlog.get_logger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for ``database_url``.

    Connection pool limits only apply to server databases; SQLite gets a
    generous busy timeout instead so concurrent writers queue rather than fail.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url, echo=echo, connect_args={"timeout": 30})

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

AsyncSessionFactory: sessionmaker[AsyncSession] = sessionmaker(  # type: ignore[type-arg]
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    Rolls back if the request raised and always closes the session.
    """
    async with AsyncSessionFactory() as session:
        try:
            yield session
        except Exception:  # noqa: BLE001 - any error must trigger rollback
            await session.rollback()
            logger.error("Async database session rollback due to error")
            raise
        finally:
            await session.close()


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
async def create_async_db_and_tables(target: AsyncEngine = engine) -> None:
    """
    Creates all tables with retry logic.

    Retries with exponential backoff while the database is still coming up.

    Raises:
        OperationalError: If the database stays unreachable after all attempts.
    """
    try:
        async with target.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("database_tables_created")
    except OperationalError as e:
        logger.warning("database_tables_creation_retry", error_type=type(e).__name__)
        raise


async def check_database_health(target: AsyncEngine = engine) -> bool:
    """Returns True if a trivial query succeeds."""
    try:
        async with target.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except OperationalError as e:
        logger.error("database_health_check_failed", error_type=type(e).__name__)
        return False
