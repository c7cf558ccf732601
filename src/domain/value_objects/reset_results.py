"""Result values returned by the reset components."""

from dataclasses import dataclass
from typing import Optional

GENERIC_RESET_MESSAGE = "If this email is registered, you will receive a reset code."
PASSWORD_RESET_SUCCESS_MESSAGE = "Password has been reset successfully."


@dataclass(frozen=True, slots=True)
class GenericAck:
    """Response to every admitted reset request, registered email or not."""

    message: str
    cooldown_seconds: int


@dataclass(frozen=True, slots=True)
class ResetTokenGrant:
    """A freshly issued reset token. The plaintext is only ever held here."""

    reset_token: str
    expires_in_seconds: int

    def __repr__(self) -> str:
        return f"ResetTokenGrant(reset_token='***', expires_in_seconds={self.expires_in_seconds})"


@dataclass(frozen=True, slots=True)
class CooldownDecision:
    allowed: bool
    wait_seconds: int = 0


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of the hourly caps. ``reason`` names the first window that refused."""

    allowed_by_email: bool
    allowed_by_ip: bool
    reason: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.allowed_by_email and self.allowed_by_ip


@dataclass(frozen=True, slots=True)
class PasswordResetAck:
    message: str = PASSWORD_RESET_SUCCESS_MESSAGE
