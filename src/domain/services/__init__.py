"""Domain Services for the password-reset bounded context.

Password Reset Services:
- OtpIssuer: cooldown, hourly caps, code issuance and delivery
- OtpVerifier / ResetTokenIssuer: attempt-limited verification and token exchange
- PasswordResetFinalizer: single-use token consumption and password update

Authentication Services:
- UserAuthenticationService: email/password login
"""

from .auth import LoginResult, UserAuthenticationService
from .password_reset import (
    CooldownGuard,
    OtpIssuer,
    OtpVerifier,
    PasswordResetFinalizer,
    ResetAuditTrail,
    ResetRateLimiter,
    ResetTokenIssuer,
)

__all__ = [
    "CooldownGuard",
    "ResetRateLimiter",
    "OtpIssuer",
    "OtpVerifier",
    "ResetTokenIssuer",
    "PasswordResetFinalizer",
    "ResetAuditTrail",
    "UserAuthenticationService",
    "LoginResult",
]
