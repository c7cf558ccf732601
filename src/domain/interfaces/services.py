"""Service interfaces for collaborators of the reset domain services.

These interfaces define contracts for infrastructure services,
enabling dependency inversion and deterministic tests (fake clock, fixed
code generator, in-memory audit sink).
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from src.domain.events.password_reset_events import SecurityAuditEvent


class IClock(ABC):
    """Source of the current time. All protocol timing reads from here."""

    @abstractmethod
    def now(self) -> datetime:
        """Returns the current timezone-aware UTC time."""
        raise NotImplementedError


class IResetCodeGenerator(ABC):
    """Cryptographically secure source of one-time codes and reset tokens."""

    @abstractmethod
    def generate_otp(self, length: int) -> str:
        """Returns a uniformly random, zero-padded decimal code of ``length`` digits."""
        raise NotImplementedError

    @abstractmethod
    def generate_reset_token(self, num_bytes: int) -> str:
        """Returns ``num_bytes`` of random data, hex encoded."""
        raise NotImplementedError


class ICredentialHasher(ABC):
    """Slow, salted hashing for OTPs, reset tokens and passwords."""

    @abstractmethod
    def hash(self, secret: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, secret: str, hashed: str) -> bool:
        """Compares ``secret`` with ``hashed`` in constant time.

        Returns False for malformed hashes instead of raising.
        """
        raise NotImplementedError


class IEmailSender(ABC):
    """Outbound email delivery."""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> bool:
        """Sends a plain-text message.

        Returns:
            True if the message was handed to the transport.

        Raises:
            EmailServiceError: If delivery failed.
        """
        raise NotImplementedError


class IAuditSink(ABC):
    """Destination for security audit events."""

    @abstractmethod
    async def publish(self, event: SecurityAuditEvent) -> None:
        raise NotImplementedError


class ITransactionManager(ABC):
    """Groups store statements into one database transaction."""

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """Commits on normal exit, rolls back and re-raises on error."""
        raise NotImplementedError


class IAccessTokenService(ABC):
    """Issues signed access tokens after a successful login."""

    @abstractmethod
    def create_access_token(self, user_id: int, email: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def decode_access_token(self, token: str) -> dict:
        raise NotImplementedError

    @property
    @abstractmethod
    def expires_in_seconds(self) -> int:
        raise NotImplementedError
