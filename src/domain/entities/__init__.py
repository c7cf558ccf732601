"""Export domain entities for use across the application."""

from .password_reset_record import PasswordResetRecord, ResetPhase, ResetRequestLogEntry
from .user import User

__all__ = ["User", "PasswordResetRecord", "ResetPhase", "ResetRequestLogEntry"]
