"""Password Reset Security Audit Events.

Every rejection and every state transition of the reset flow is reported to
the audit sink as a ``SecurityAuditEvent``. Events carry masked identifiers
only; codes, tokens and hashes never appear in ``fields``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class AuditEventName(str, Enum):
    """Names of the audit events emitted by the reset and login flows."""

    RESET_COOLDOWN_BLOCKED = "RESET_COOLDOWN_BLOCKED"
    RESET_RATE_LIMIT_EMAIL = "RESET_RATE_LIMIT_EMAIL"
    RESET_RATE_LIMIT_IP = "RESET_RATE_LIMIT_IP"
    RESET_UNKNOWN_EMAIL = "RESET_UNKNOWN_EMAIL"
    RESET_OTP_SENT = "RESET_OTP_SENT"
    RESET_EMAIL_FAILED = "RESET_EMAIL_FAILED"
    RESET_CONCURRENT_REQUEST = "RESET_CONCURRENT_REQUEST"
    RESET_ERROR = "RESET_ERROR"

    VERIFY_NO_VALID_OTP = "VERIFY_NO_VALID_OTP"
    VERIFY_MAX_ATTEMPTS = "VERIFY_MAX_ATTEMPTS"
    VERIFY_FAILED = "VERIFY_FAILED"
    VERIFY_SUCCESS = "VERIFY_SUCCESS"
    VERIFY_TOKEN_ALREADY_ISSUED = "VERIFY_TOKEN_ALREADY_ISSUED"
    VERIFY_ERROR = "VERIFY_ERROR"

    RESET_WEAK_PASSWORD = "RESET_WEAK_PASSWORD"
    RESET_EXPIRED_TOKEN = "RESET_EXPIRED_TOKEN"
    RESET_INVALID_TOKEN = "RESET_INVALID_TOKEN"
    RESET_PASSWORD_CHANGED = "RESET_PASSWORD_CHANGED"
    RESET_FINALIZE_ERROR = "RESET_FINALIZE_ERROR"

    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"


@dataclass(frozen=True)
class SecurityAuditEvent:
    """An immutable audit record.

    Attributes:
        name: What happened.
        occurred_at: When it happened, always timezone-aware.
        fields: Masked context (email, origin, outcome, counters).
        correlation_id: Optional request correlation id.
    """

    name: AuditEventName
    occurred_at: datetime
    fields: Dict[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None

    def __post_init__(self):
        if not self.occurred_at.tzinfo:
            object.__setattr__(self, "occurred_at", self.occurred_at.replace(tzinfo=timezone.utc))
