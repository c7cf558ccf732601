"""Password Reset Finalizer Service.

Consumes a reset token exactly once and replaces the account password in the
same transaction.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import (
    DatabaseError,
    ExpiredOrConsumedError,
    InvalidCredentialError,
    PasswordPolicyError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.events.password_reset_events import AuditEventName
from src.domain.interfaces.repositories import IPasswordResetRecordRepository, IUserRepository
from src.domain.interfaces.services import IClock, ICredentialHasher, ITransactionManager
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.audit import ResetAuditTrail
from src.domain.value_objects.email import Email
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import PasswordResetAck

logger = structlog.get_logger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid reset token."


class PasswordResetFinalizer:
    """Service for completing password resets.

    A wrong token does not consume attempts; the token is 256 bits of
    entropy and the endpoint is throttled per origin. The record is consumed
    with a conditional update, so replays and concurrent finalizations see
    ``ExpiredOrConsumedError`` and leave the password untouched.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        record_repository: IPasswordResetRecordRepository,
        transaction_manager: ITransactionManager,
        hasher: ICredentialHasher,
        audit: ResetAuditTrail,
        clock: IClock,
        policy: ResetPolicy,
    ):
        self._user_repository = user_repository
        self._record_repository = record_repository
        self._tx = transaction_manager
        self._hasher = hasher
        self._audit = audit
        self._clock = clock
        self._policy = policy

        logger.info("PasswordResetFinalizer initialized")

    async def finalize(
        self,
        email: str,
        reset_token: str,
        new_password: str,
        ip: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> PasswordResetAck:
        """Reset the password using a previously issued reset token.

        Workflow:
        1. Enforce the password length policy
        2. Find the active record for the email
        3. Check the record is in the token phase and the token matches
        4. Consume the record, update the password and close any other
           unused records of the account, all in one transaction

        Raises:
            PasswordPolicyError: If the new password is too short or too long.
            ExpiredOrConsumedError: If no live token exists or it was already used.
            InvalidCredentialError: If the token does not match.
            DatabaseError: If the record store fails.
        """
        self._check_password_policy(new_password)

        try:
            normalized = Email(email).value
        except (TypeError, ValueError):
            normalized = None

        masked = secure_logging_service.mask_email(normalized or "")
        masked_ip = secure_logging_service.mask_ip_address(ip or "unknown")

        try:
            now = self._clock.now()
            record = None
            if normalized is not None:
                record = await self._record_repository.get_active_for_email(normalized, now)

            if record is None:
                await self._audit.record(
                    AuditEventName.RESET_EXPIRED_TOKEN, correlation_id, email=masked, ip=masked_ip
                )
                raise ExpiredOrConsumedError()

            if not self._token_matches(reset_token, record):
                await self._audit.record(
                    AuditEventName.RESET_INVALID_TOKEN,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                    record_id=record.id,
                )
                raise InvalidCredentialError(INVALID_TOKEN_MESSAGE, code="invalid_reset_token")

            password_hash = self._hasher.hash(new_password)
            async with self._tx.atomic():
                consumed = await self._record_repository.consume(record.id, record.credential_hash, now)
                if consumed:
                    await self._user_repository.update_password(record.user_id, password_hash, now)
                    await self._record_repository.invalidate_unused_for_user(record.user_id, exclude_id=record.id)

            if not consumed:
                await self._audit.record(
                    AuditEventName.RESET_EXPIRED_TOKEN,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                    record_id=record.id,
                )
                raise ExpiredOrConsumedError()
        except SQLAlchemyError as e:
            logger.error(
                "Password reset failed on the record store",
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
            await self._audit.record(
                AuditEventName.RESET_FINALIZE_ERROR,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error_type=type(e).__name__,
            )
            raise DatabaseError() from e

        await self._audit.record(
            AuditEventName.RESET_PASSWORD_CHANGED,
            correlation_id,
            email=masked,
            ip=masked_ip,
            user_id=record.user_id,
        )
        logger.info("Password reset completed", user_id=record.user_id, correlation_id=correlation_id)
        return PasswordResetAck()

    def _check_password_policy(self, new_password: str) -> None:
        if not isinstance(new_password, str) or len(new_password) < self._policy.password_min_length:
            raise PasswordPolicyError(
                f"Password must be at least {self._policy.password_min_length} characters"
            )
        if len(new_password) > self._policy.password_max_length:
            raise PasswordPolicyError(
                f"Password must be at most {self._policy.password_max_length} characters"
            )

    def _token_matches(self, reset_token: str, record: PasswordResetRecord) -> bool:
        if record.phase != ResetPhase.TOKEN_PENDING:
            return False
        if not isinstance(reset_token, str) or not reset_token:
            return False
        return self._hasher.verify(reset_token, record.credential_hash)
