"""User Repository implementation using SQLAlchemy.

Implements ``IUserRepository`` on an ``AsyncSession``. The repository never
commits; callers group writes with ``ITransactionManager.atomic()``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.domain.entities.user import User
from src.domain.interfaces.repositories import IUserRepository
from src.domain.security.logging_service import secure_logging_service

logger = get_logger(__name__)


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of IUserRepository.

    Emails are expected to be normalized by the caller, so lookups are plain
    equality matches on the unique ``email`` column.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        logger.debug("UserRepository initialized")

    async def get_by_id(self, user_id: int) -> Optional[User]:
        if user_id <= 0:
            logger.warning("Invalid user ID provided", user_id=user_id, error_type="validation_error")
            raise ValueError("User ID must be a positive integer")

        statement = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by normalized email.

        Args:
            email: Trimmed, lower-cased address.

        Returns:
            User entity if found, None otherwise
        """
        if not email or not email.strip():
            logger.warning("Empty email provided", error_type="validation_error")
            raise ValueError("Email cannot be empty or whitespace-only")

        try:
            statement = select(User).where(User.email == email).execution_options(populate_existing=True)
            result = await self.db_session.execute(statement)
            user = result.scalars().first()

            logger.debug(
                "User lookup by email completed",
                email=secure_logging_service.mask_email(email),
                found=user is not None,
                operation="get_by_email",
            )
            return user

        except Exception as e:
            logger.error(
                "Error retrieving user by email",
                email=secure_logging_service.mask_email(email),
                error_type=type(e).__name__,
                operation="get_by_email",
            )
            raise

    async def add(self, user: User) -> User:
        self.db_session.add(user)
        await self.db_session.flush()
        logger.info("User staged", user_id=user.id, operation="add")
        return user

    async def update_password(self, user_id: int, hashed_password: str, changed_at: datetime) -> bool:
        statement = (
            update(User)
            .where(User.id == user_id)
            .values(hashed_password=hashed_password, password_changed_at=changed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        updated = result.rowcount == 1
        logger.info("User password updated", user_id=user_id, updated=updated, operation="update_password")
        return updated
