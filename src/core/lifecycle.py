"""Application lifecycle management.

Handles startup and shutdown: database checks, table creation and engine
disposal.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config.settings import settings
from src.core.logging import logger
from src.core.ratelimiter import limiter
from src.infrastructure.database import check_database_health, create_async_db_and_tables, engine


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown for the application.

        Raises:
            RuntimeError: If database is unavailable during startup
        """
        # Startup
        await create_async_db_and_tables()
        if not await check_database_health():
            logger.error("database_unavailable_on_startup")
            raise RuntimeError("Database unavailable")
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        app.state.limiter = limiter

        yield

        # Shutdown
        await engine.dispose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
