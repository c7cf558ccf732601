from __future__ import annotations

"""Centralized, structured exception hierarchy for ResetGate.

Every exception carries a machine-readable ``code`` and a human-readable
``message``. The HTTP layer (``src.core.handlers``) maps each family to a
status code, so domain services never deal with HTTP concerns directly.

Families:
- ``ValidationError``: malformed input (400).
- ``ThrottledError``: cooldown or hourly caps (429).
- ``ResetCredentialError``: OTP / reset-token problems (400).
- ``AuthenticationError``: failed login (401).
- ``InternalError``: store failures (500, details never exposed).
"""

from typing import Final, Optional

__all__: Final = [
    "ResetGateError",
    "ValidationError",
    "PasswordPolicyError",
    "ThrottledError",
    "CooldownError",
    "RateLimitExceededError",
    "ResetCredentialError",
    "NoActiveRequestError",
    "InvalidCredentialError",
    "AttemptsExhaustedError",
    "ExpiredOrConsumedError",
    "ResetTokenAlreadyIssuedError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "EmailServiceError",
    "InternalError",
    "DatabaseError",
]


class ResetGateError(Exception):
    """Base exception class for all custom errors in the ResetGate service.

    Attributes:
        message (str): A human-readable error message, safe to return to clients.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class ValidationError(ResetGateError):
    """Raised when request input is missing or malformed."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class PasswordPolicyError(ValidationError):
    """Raised when a new password does not satisfy the length policy."""

    def __init__(self, message: str = "Password must be at least 8 characters", code: str = "password_policy_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Throttling
# ---------------------------------------------------------------------------


class ThrottledError(ResetGateError):
    """Raised when a reset request is rejected by cooldown or rate limits.

    ``wait_seconds`` is only meaningful for cooldown rejections, ``reason``
    tells which window rejected the request.
    """

    def __init__(
        self,
        message: str,
        code: str = "throttled",
        wait_seconds: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.wait_seconds = wait_seconds
        self.reason = reason


class CooldownError(ThrottledError):
    def __init__(self, wait_seconds: int):
        super().__init__(
            f"Please wait {wait_seconds} seconds before requesting another code.",
            code="cooldown_active",
            wait_seconds=wait_seconds,
            reason="cooldown",
        )


class RateLimitExceededError(ThrottledError):
    """Raised when the hourly per-email or per-IP cap is reached."""

    def __init__(self, message: str, reason: str):
        super().__init__(message, code="rate_limit_exceeded", reason=reason)


# ---------------------------------------------------------------------------
# Reset credentials (OTP and reset token)
# ---------------------------------------------------------------------------


class ResetCredentialError(ResetGateError):
    """Base class for failures while verifying or consuming a reset credential."""


class NoActiveRequestError(ResetCredentialError):
    def __init__(self, message: str = "No valid reset request found. Please request a new code."):
        super().__init__(message, code="no_active_request")


class InvalidCredentialError(ResetCredentialError):
    """Raised for a wrong OTP (with remaining attempts) or an unknown reset token."""

    def __init__(
        self,
        message: str,
        remaining_attempts: Optional[int] = None,
        code: str = "invalid_credential",
    ):
        super().__init__(message, code)
        self.remaining_attempts = remaining_attempts


class AttemptsExhaustedError(ResetCredentialError):
    def __init__(self, message: str = "Too many failed attempts. Please request a new code."):
        super().__init__(message, code="attempts_exhausted")


class ExpiredOrConsumedError(ResetCredentialError):
    def __init__(self, message: str = "Reset link has expired. Please request a new one."):
        super().__init__(message, code="reset_expired")


class ResetTokenAlreadyIssuedError(ResetCredentialError):
    """Raised to the loser of two concurrent correct verifications."""

    def __init__(self, message: str = "A reset token was already issued for this request."):
        super().__init__(message, code="token_already_issued")


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class AuthenticationError(ResetGateError):
    def __init__(self, message: str, code: str = "authentication_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "invalid credentials"):
        super().__init__(message, code="invalid_credentials")


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class EmailServiceError(ResetGateError):
    """Raised by the email sender when delivery fails; never reaches clients."""

    def __init__(self, message: str, code: str = "email_service_error"):
        super().__init__(message, code)


class InternalError(ResetGateError):
    def __init__(self, message: str = "Something went wrong. Please try again later.", code: str = "internal_error"):
        super().__init__(message, code)


class DatabaseError(InternalError):
    """Raised when the record store cannot complete an operation."""

    def __init__(self, message: str = "Something went wrong. Please try again later."):
        super().__init__(message, code="database_error")
