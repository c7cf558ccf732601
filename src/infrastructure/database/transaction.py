"""Transaction boundary for repository writes."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.interfaces.services import ITransactionManager

logger = structlog.get_logger(__name__)


class SQLAlchemyTransactionManager(ITransactionManager):
    """Commits the session's pending work as one unit.

    Statements issued by the repositories inside ``atomic()`` are committed
    together on normal exit and rolled back together if anything raises.
    """

    def __init__(self, db_session: AsyncSession):
        self._session = db_session

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        try:
            yield
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            logger.debug("Transaction rolled back")
            raise
