"""Protocol constants for the password-reset flow.

The numbers below are part of the externally observable contract (they show
up in responses and messages), so they live in one frozen value that is built
once and handed to every component instead of being read from the
environment piecemeal.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Final


@dataclass(frozen=True, slots=True)
class ResetPolicy:
    """Immutable limits shared by issuer, verifier and finalizer.

    Attributes:
        otp_length: Number of decimal digits in a one-time code.
        otp_ttl: Lifetime of a freshly issued code.
        reset_token_ttl: Lifetime of the reset token that replaces a verified code.
        reset_token_bytes: Entropy of the reset token, in bytes.
        cooldown: Minimum spacing between two requests for the same email.
        max_attempts: Failed verifications tolerated per code.
        max_requests_per_email: Requests admitted per email per ``rate_window``.
        max_requests_per_ip: Requests admitted per origin per ``rate_window``.
        rate_window: Rolling window used by the hourly caps.
        password_min_length: Shortest acceptable new password.
        password_max_length: Longest acceptable new password.
        email_send_timeout_seconds: Upper bound on a single delivery attempt.
    """

    otp_length: int = 6
    otp_ttl: timedelta = timedelta(minutes=10)
    reset_token_ttl: timedelta = timedelta(minutes=5)
    reset_token_bytes: int = 32
    cooldown: timedelta = timedelta(seconds=60)
    max_attempts: int = 5
    max_requests_per_email: int = 3
    max_requests_per_ip: int = 10
    rate_window: timedelta = timedelta(hours=1)
    password_min_length: int = 8
    password_max_length: int = 128
    email_send_timeout_seconds: float = 10.0

    def __post_init__(self):
        if self.otp_length < 4:
            raise ValueError("otp_length must be at least 4")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        if self.password_min_length > self.password_max_length:
            raise ValueError("password_min_length cannot exceed password_max_length")

    @property
    def cooldown_seconds(self) -> int:
        return int(self.cooldown.total_seconds())

    @property
    def reset_token_ttl_seconds(self) -> int:
        return int(self.reset_token_ttl.total_seconds())


DEFAULT_RESET_POLICY: Final = ResetPolicy()
