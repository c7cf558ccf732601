"""Request log repository implementation using SQLAlchemy."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities.password_reset_record import ResetRequestLogEntry
from src.domain.interfaces.repositories import IResetRequestLogRepository


class ResetRequestLogRepository(IResetRequestLogRepository):
    """SQLAlchemy implementation of IResetRequestLogRepository."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def last_request_at(self, email: str) -> Optional[datetime]:
        statement = (
            select(ResetRequestLogEntry.created_at)
            .where(ResetRequestLogEntry.email == email)
            .order_by(ResetRequestLogEntry.created_at.desc())
            .limit(1)
        )
        result = await self.db_session.execute(statement)
        return result.scalar_one_or_none()

    async def count_for_email_since(self, email: str, since: datetime) -> int:
        statement = select(func.count()).select_from(ResetRequestLogEntry).where(
            ResetRequestLogEntry.email == email,
            ResetRequestLogEntry.created_at > since,
        )
        result = await self.db_session.execute(statement)
        return result.scalar_one()

    async def count_for_ip_since(self, ip: str, since: datetime) -> int:
        statement = select(func.count()).select_from(ResetRequestLogEntry).where(
            ResetRequestLogEntry.origin_ip == ip,
            ResetRequestLogEntry.created_at > since,
        )
        result = await self.db_session.execute(statement)
        return result.scalar_one()

    async def append(self, email: str, ip: str, at: datetime) -> None:
        self.db_session.add(ResetRequestLogEntry(email=email, origin_ip=ip, created_at=at))
        await self.db_session.flush()
