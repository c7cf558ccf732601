"""Reset record repository implementation using SQLAlchemy.

Every state change is one ``UPDATE ... WHERE <observed state>`` so that the
database, not the application, decides which of two concurrent callers wins.
``synchronize_session=False`` is used throughout: the ORM objects read earlier
are snapshots of observed state and are never relied on after a write.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import false, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.interfaces.repositories import IPasswordResetRecordRepository

logger = get_logger(__name__)


class PasswordResetRecordRepository(IPasswordResetRecordRepository):
    """SQLAlchemy implementation of IPasswordResetRecordRepository."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _unused(self):
        return PasswordResetRecord.used == false()

    async def get_active_for_email(self, email: str, now: datetime) -> Optional[PasswordResetRecord]:
        statement = (
            select(PasswordResetRecord)
            .where(
                PasswordResetRecord.email == email,
                self._unused(),
                PasswordResetRecord.expires_at > now,
            )
            .order_by(PasswordResetRecord.created_at.desc(), PasswordResetRecord.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def invalidate_unused_for_email(self, email: str) -> int:
        statement = (
            update(PasswordResetRecord)
            .where(PasswordResetRecord.email == email, self._unused())
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount or 0

    async def invalidate_unused_for_user(self, user_id: int, exclude_id: Optional[int] = None) -> int:
        conditions = [PasswordResetRecord.user_id == user_id, self._unused()]
        if exclude_id is not None:
            conditions.append(PasswordResetRecord.id != exclude_id)
        statement = (
            update(PasswordResetRecord)
            .where(*conditions)
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount or 0

    async def insert(self, record: PasswordResetRecord) -> PasswordResetRecord:
        self.db_session.add(record)
        await self.db_session.flush()
        logger.debug("Reset record inserted", record_id=record.id, user_id=record.user_id)
        return record

    async def close(self, record_id: int) -> bool:
        statement = (
            update(PasswordResetRecord)
            .where(PasswordResetRecord.id == record_id, self._unused())
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def increment_attempts(
        self, record_id: int, observed_hash: str, max_attempts: int
    ) -> Optional[int]:
        statement = (
            update(PasswordResetRecord)
            .where(
                PasswordResetRecord.id == record_id,
                self._unused(),
                PasswordResetRecord.phase == ResetPhase.OTP_PENDING,
                PasswordResetRecord.attempts < max_attempts,
                PasswordResetRecord.credential_hash == observed_hash,
            )
            .values(attempts=PasswordResetRecord.attempts + 1)
            .returning(PasswordResetRecord.attempts)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.scalar_one_or_none()

    async def swap_credential(
        self,
        record_id: int,
        observed_hash: str,
        new_hash: str,
        new_expires_at: datetime,
        now: datetime,
        max_attempts: int,
    ) -> bool:
        statement = (
            update(PasswordResetRecord)
            .where(
                PasswordResetRecord.id == record_id,
                self._unused(),
                PasswordResetRecord.phase == ResetPhase.OTP_PENDING,
                PasswordResetRecord.credential_hash == observed_hash,
                PasswordResetRecord.attempts < max_attempts,
                PasswordResetRecord.expires_at > now,
            )
            .values(
                credential_hash=new_hash,
                expires_at=new_expires_at,
                phase=ResetPhase.TOKEN_PENDING,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def consume(self, record_id: int, observed_hash: str, now: datetime) -> bool:
        statement = (
            update(PasswordResetRecord)
            .where(
                PasswordResetRecord.id == record_id,
                self._unused(),
                PasswordResetRecord.phase == ResetPhase.TOKEN_PENDING,
                PasswordResetRecord.credential_hash == observed_hash,
                PasswordResetRecord.expires_at > now,
            )
            .values(used=True, phase=ResetPhase.CONSUMED)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1
