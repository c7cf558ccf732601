"""Repository implementations for the infrastructure layer."""

from .password_reset_record_repository import PasswordResetRecordRepository
from .reset_request_log_repository import ResetRequestLogRepository
from .user_repository import UserRepository

__all__ = ["UserRepository", "PasswordResetRecordRepository", "ResetRequestLogRepository"]
