"""Dependency injection for the password-reset and login services.

Each factory builds one collaborator; FastAPI resolves the graph per request
and shares the request's ``AsyncSession`` between repositories and the
transaction manager. Tests replace the leaf factories (session, clock, code
generator, hasher, email sender, audit sink) through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import settings
from src.domain.interfaces.repositories import (
    IPasswordResetRecordRepository,
    IResetRequestLogRepository,
    IUserRepository,
)
from src.domain.interfaces.services import (
    IAccessTokenService,
    IAuditSink,
    IClock,
    ICredentialHasher,
    IEmailSender,
    IResetCodeGenerator,
    ITransactionManager,
)
from src.domain.services.auth.user_authentication import UserAuthenticationService
from src.domain.services.password_reset import (
    CooldownGuard,
    OtpIssuer,
    OtpVerifier,
    PasswordResetFinalizer,
    ResetAuditTrail,
    ResetRateLimiter,
    ResetTokenIssuer,
)
from src.domain.value_objects.reset_policy import DEFAULT_RESET_POLICY, ResetPolicy
from src.infrastructure.database.async_db import get_async_db
from src.infrastructure.database.transaction import SQLAlchemyTransactionManager
from src.infrastructure.repositories import (
    PasswordResetRecordRepository,
    ResetRequestLogRepository,
    UserRepository,
)
from src.infrastructure.services.audit_sink import StructlogAuditSink
from src.infrastructure.services.clock import SystemClock
from src.infrastructure.services.code_generator import SecureCodeGenerator
from src.infrastructure.services.credential_hasher import BcryptCredentialHasher
from src.infrastructure.services.email.otp_email_sender import SmtpEmailSender, build_connection_config
from src.infrastructure.services.token_service import JwtAccessTokenService

# ---------------------------------------------------------------------------
# Type aliases for dependency injection
# ---------------------------------------------------------------------------

AsyncDB = Annotated[AsyncSession, Depends(get_async_db)]

# ---------------------------------------------------------------------------
# Process-wide collaborators
# ---------------------------------------------------------------------------


def get_reset_policy() -> ResetPolicy:
    return DEFAULT_RESET_POLICY


@lru_cache
def get_clock() -> IClock:
    return SystemClock()


@lru_cache
def get_code_generator() -> IResetCodeGenerator:
    return SecureCodeGenerator()


@lru_cache
def get_credential_hasher() -> ICredentialHasher:
    return BcryptCredentialHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache
def get_email_sender() -> IEmailSender:
    """Factory that returns the SMTP sender, or a logging sender in test mode."""
    if settings.EMAIL_TEST_MODE:
        return SmtpEmailSender(config=None, test_mode=True)

    return SmtpEmailSender(config=build_connection_config(settings))


@lru_cache
def get_audit_sink() -> IAuditSink:
    return StructlogAuditSink()


def get_access_token_service(clock: IClock = Depends(get_clock)) -> IAccessTokenService:
    return JwtAccessTokenService(
        secret_key=settings.SECRET_KEY,
        clock=clock,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
    )


# ---------------------------------------------------------------------------
# Per-request infrastructure
# ---------------------------------------------------------------------------


def get_user_repository(db: AsyncDB) -> IUserRepository:
    return UserRepository(db)


def get_record_repository(db: AsyncDB) -> IPasswordResetRecordRepository:
    return PasswordResetRecordRepository(db)


def get_request_log_repository(db: AsyncDB) -> IResetRequestLogRepository:
    return ResetRequestLogRepository(db)


def get_transaction_manager(db: AsyncDB) -> ITransactionManager:
    return SQLAlchemyTransactionManager(db)


def get_audit_trail(
    sink: IAuditSink = Depends(get_audit_sink),
    clock: IClock = Depends(get_clock),
) -> ResetAuditTrail:
    return ResetAuditTrail(sink=sink, clock=clock)


# ---------------------------------------------------------------------------
# Domain services
# ---------------------------------------------------------------------------


def get_otp_issuer(
    user_repository: IUserRepository = Depends(get_user_repository),
    record_repository: IPasswordResetRecordRepository = Depends(get_record_repository),
    request_log: IResetRequestLogRepository = Depends(get_request_log_repository),
    transaction_manager: ITransactionManager = Depends(get_transaction_manager),
    code_generator: IResetCodeGenerator = Depends(get_code_generator),
    hasher: ICredentialHasher = Depends(get_credential_hasher),
    email_sender: IEmailSender = Depends(get_email_sender),
    audit: ResetAuditTrail = Depends(get_audit_trail),
    clock: IClock = Depends(get_clock),
    policy: ResetPolicy = Depends(get_reset_policy),
) -> OtpIssuer:
    """Factory that returns the reset-request service with its guards."""
    return OtpIssuer(
        user_repository=user_repository,
        record_repository=record_repository,
        transaction_manager=transaction_manager,
        cooldown_guard=CooldownGuard(request_log, clock, policy),
        rate_limiter=ResetRateLimiter(request_log, clock, policy),
        code_generator=code_generator,
        hasher=hasher,
        email_sender=email_sender,
        audit=audit,
        clock=clock,
        policy=policy,
        product_name=settings.EMAIL_FROM_NAME,
    )


def get_otp_verifier(
    record_repository: IPasswordResetRecordRepository = Depends(get_record_repository),
    transaction_manager: ITransactionManager = Depends(get_transaction_manager),
    code_generator: IResetCodeGenerator = Depends(get_code_generator),
    hasher: ICredentialHasher = Depends(get_credential_hasher),
    audit: ResetAuditTrail = Depends(get_audit_trail),
    clock: IClock = Depends(get_clock),
    policy: ResetPolicy = Depends(get_reset_policy),
) -> OtpVerifier:
    token_issuer = ResetTokenIssuer(
        record_repository=record_repository,
        transaction_manager=transaction_manager,
        code_generator=code_generator,
        hasher=hasher,
        clock=clock,
        policy=policy,
    )
    return OtpVerifier(
        record_repository=record_repository,
        transaction_manager=transaction_manager,
        hasher=hasher,
        token_issuer=token_issuer,
        audit=audit,
        clock=clock,
        policy=policy,
    )


def get_password_reset_finalizer(
    user_repository: IUserRepository = Depends(get_user_repository),
    record_repository: IPasswordResetRecordRepository = Depends(get_record_repository),
    transaction_manager: ITransactionManager = Depends(get_transaction_manager),
    hasher: ICredentialHasher = Depends(get_credential_hasher),
    audit: ResetAuditTrail = Depends(get_audit_trail),
    clock: IClock = Depends(get_clock),
    policy: ResetPolicy = Depends(get_reset_policy),
) -> PasswordResetFinalizer:
    return PasswordResetFinalizer(
        user_repository=user_repository,
        record_repository=record_repository,
        transaction_manager=transaction_manager,
        hasher=hasher,
        audit=audit,
        clock=clock,
        policy=policy,
    )


def get_user_authentication_service(
    user_repository: IUserRepository = Depends(get_user_repository),
    hasher: ICredentialHasher = Depends(get_credential_hasher),
    token_service: IAccessTokenService = Depends(get_access_token_service),
    audit: ResetAuditTrail = Depends(get_audit_trail),
) -> UserAuthenticationService:
    return UserAuthenticationService(
        user_repository=user_repository,
        hasher=hasher,
        token_service=token_service,
        audit=audit,
    )
