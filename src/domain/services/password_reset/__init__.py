"""Password reset domain services."""

from .audit import ResetAuditTrail
from .cooldown_guard import CooldownGuard
from .otp_issuer import OtpIssuer
from .otp_verifier import OtpVerifier
from .password_reset_finalizer import PasswordResetFinalizer
from .rate_limiter import ResetRateLimiter
from .reset_token_issuer import ResetTokenIssuer

__all__ = [
    "ResetAuditTrail",
    "CooldownGuard",
    "ResetRateLimiter",
    "OtpIssuer",
    "OtpVerifier",
    "ResetTokenIssuer",
    "PasswordResetFinalizer",
]
