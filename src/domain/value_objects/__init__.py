"""Domain Value Objects for the password-reset domain.

Value objects are immutable objects that describe domain concepts by their attributes
rather than their identity.
"""

from .email import Email
from .reset_policy import DEFAULT_RESET_POLICY, ResetPolicy
from .reset_results import (
    GENERIC_RESET_MESSAGE,
    PASSWORD_RESET_SUCCESS_MESSAGE,
    CooldownDecision,
    GenericAck,
    PasswordResetAck,
    RateLimitDecision,
    ResetTokenGrant,
)

__all__ = [
    "Email",
    "ResetPolicy",
    "DEFAULT_RESET_POLICY",
    "GenericAck",
    "ResetTokenGrant",
    "CooldownDecision",
    "RateLimitDecision",
    "PasswordResetAck",
    "GENERIC_RESET_MESSAGE",
    "PASSWORD_RESET_SUCCESS_MESSAGE",
]
