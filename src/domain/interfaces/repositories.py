"""Repository interfaces for abstracting data persistence in the domain layer.

The domain services talk to these ports only. Concrete SQLAlchemy adapters
live in ``src.infrastructure.repositories``.

Repositories never commit. Every mutating call is expected to run inside
``ITransactionManager.atomic()`` so that multi-statement steps are applied
together or not at all.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities.password_reset_record import PasswordResetRecord
from src.domain.entities.user import User


class IUserRepository(ABC):
    """Account lookups and the password update performed by a reset."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Retrieves a user by normalized email address.

        Args:
            email: The normalized email address to search for.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def add(self, user: User) -> User:
        """Stages a new user and flushes it so that ``id`` is populated."""
        raise NotImplementedError

    @abstractmethod
    async def update_password(self, user_id: int, hashed_password: str, changed_at: datetime) -> bool:
        """Replaces the password hash of an account.

        Returns:
            True if the account existed and was updated.
        """
        raise NotImplementedError


class IPasswordResetRecordRepository(ABC):
    """Transactional store for reset records.

    State changes are conditional updates guarded on the state the caller
    observed, so two concurrent callers can never both apply the same
    transition. A method returning ``False`` or ``None`` means the guard did
    not match and nothing was written.
    """

    @abstractmethod
    async def get_active_for_email(self, email: str, now: datetime) -> Optional[PasswordResetRecord]:
        """Returns the newest record with ``used = false`` and ``expires_at > now``."""
        raise NotImplementedError

    @abstractmethod
    async def invalidate_unused_for_email(self, email: str) -> int:
        """Marks every unused record for the email as used.

        Returns:
            The number of records closed.
        """
        raise NotImplementedError

    @abstractmethod
    async def invalidate_unused_for_user(self, user_id: int, exclude_id: Optional[int] = None) -> int:
        """Marks every unused record of the user as used, except ``exclude_id``."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, record: PasswordResetRecord) -> PasswordResetRecord:
        raise NotImplementedError

    @abstractmethod
    async def close(self, record_id: int) -> bool:
        """Sets ``used = true`` if the record is still unused."""
        raise NotImplementedError

    @abstractmethod
    async def increment_attempts(
        self, record_id: int, observed_hash: str, max_attempts: int
    ) -> Optional[int]:
        """Counts one failed verification.

        Applied only while the record is unused, still in the OTP phase, holds
        ``observed_hash`` and is below ``max_attempts``.

        Returns:
            The new attempt count, or None if the guard did not match.
        """
        raise NotImplementedError

    @abstractmethod
    async def swap_credential(
        self,
        record_id: int,
        observed_hash: str,
        new_hash: str,
        new_expires_at: datetime,
        now: datetime,
        max_attempts: int,
    ) -> bool:
        """Replaces the verified OTP hash with a reset-token hash.

        Applied only while the record is unused, unexpired, in the OTP phase,
        below ``max_attempts`` and still holding ``observed_hash``. On success
        the phase becomes ``TOKEN_PENDING``.
        """
        raise NotImplementedError

    @abstractmethod
    async def consume(self, record_id: int, observed_hash: str, now: datetime) -> bool:
        """Closes a token-phase record for good.

        Applied only while the record is unused, unexpired, in the token phase
        and still holding ``observed_hash``.
        """
        raise NotImplementedError


class IResetRequestLogRepository(ABC):
    """Append-only log of admitted reset requests.

    Cooldown and hourly caps are queries over this log, so they hold across
    processes and apply to unknown emails exactly as to registered ones.
    """

    @abstractmethod
    async def last_request_at(self, email: str) -> Optional[datetime]:
        raise NotImplementedError

    @abstractmethod
    async def count_for_email_since(self, email: str, since: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    async def count_for_ip_since(self, ip: str, since: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    async def append(self, email: str, ip: str, at: datetime) -> None:
        raise NotImplementedError
