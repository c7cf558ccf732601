"""Domain interfaces (ports) for the password-reset service."""

from .repositories import (
    IPasswordResetRecordRepository,
    IResetRequestLogRepository,
    IUserRepository,
)
from .services import (
    IAccessTokenService,
    IAuditSink,
    IClock,
    ICredentialHasher,
    IEmailSender,
    IResetCodeGenerator,
    ITransactionManager,
)

__all__ = [
    "IUserRepository",
    "IPasswordResetRecordRepository",
    "IResetRequestLogRepository",
    "IClock",
    "IResetCodeGenerator",
    "ICredentialHasher",
    "IEmailSender",
    "IAuditSink",
    "ITransactionManager",
    "IAccessTokenService",
]
