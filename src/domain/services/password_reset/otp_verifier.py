"""OTP Verifier Service.

Checks a submitted code against the active reset record with a hard limit on
failed attempts, and hands a correct code over to ``ResetTokenIssuer``.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import (
    AttemptsExhaustedError,
    DatabaseError,
    InvalidCredentialError,
    NoActiveRequestError,
    ResetTokenAlreadyIssuedError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.events.password_reset_events import AuditEventName
from src.domain.interfaces.repositories import IPasswordResetRecordRepository
from src.domain.interfaces.services import IClock, ICredentialHasher, ITransactionManager
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.audit import ResetAuditTrail
from src.domain.services.password_reset.reset_token_issuer import ResetTokenIssuer
from src.domain.value_objects.email import Email
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import ResetTokenGrant

logger = structlog.get_logger(__name__)


class OtpVerifier:
    """Service for verifying one-time reset codes.

    Every failed guess is counted with a conditional update, so concurrent
    wrong guesses cannot push ``attempts`` past the limit or lose increments.
    Once the limit is reached the record is closed before any further
    comparison.
    """

    def __init__(
        self,
        record_repository: IPasswordResetRecordRepository,
        transaction_manager: ITransactionManager,
        hasher: ICredentialHasher,
        token_issuer: ResetTokenIssuer,
        audit: ResetAuditTrail,
        clock: IClock,
        policy: ResetPolicy,
    ):
        self._record_repository = record_repository
        self._tx = transaction_manager
        self._hasher = hasher
        self._token_issuer = token_issuer
        self._audit = audit
        self._clock = clock
        self._policy = policy

        logger.info("OtpVerifier initialized")

    async def verify(
        self,
        email: str,
        code: str,
        ip: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> ResetTokenGrant:
        """Verify a reset code and exchange it for a reset token.

        Args:
            email: Email the code was requested for.
            code: The submitted code.
            ip: Origin address, for auditing.
            correlation_id: Optional correlation ID for request tracking.

        Returns:
            ResetTokenGrant: The new reset token and its lifetime.

        Raises:
            NoActiveRequestError: No unexpired code is pending for the email.
            AttemptsExhaustedError: The attempt limit is reached.
            InvalidCredentialError: Wrong code, with the remaining attempts.
            ResetTokenAlreadyIssuedError: A concurrent verification won.
            DatabaseError: If the record store fails.
        """
        try:
            normalized = Email(email).value
        except (TypeError, ValueError):
            normalized = None

        masked = secure_logging_service.mask_email(normalized or "")
        masked_ip = secure_logging_service.mask_ip_address(ip or "unknown")

        try:
            record = None
            if normalized is not None:
                record = await self._record_repository.get_active_for_email(normalized, self._clock.now())

            if record is None or record.phase != ResetPhase.OTP_PENDING:
                await self._audit.record(
                    AuditEventName.VERIFY_NO_VALID_OTP, correlation_id, email=masked, ip=masked_ip
                )
                raise NoActiveRequestError()

            if record.attempts >= self._policy.max_attempts:
                async with self._tx.atomic():
                    await self._record_repository.close(record.id)
                await self._audit.record(
                    AuditEventName.VERIFY_MAX_ATTEMPTS,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                    record_id=record.id,
                )
                raise AttemptsExhaustedError()

            if not self._matches(code, record):
                await self._count_failure(record, masked, masked_ip, correlation_id)

            try:
                grant = await self._token_issuer.issue(record)
            except ResetTokenAlreadyIssuedError:
                await self._audit.record(
                    AuditEventName.VERIFY_TOKEN_ALREADY_ISSUED,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                    record_id=record.id,
                )
                raise
        except SQLAlchemyError as e:
            logger.error(
                "Code verification failed on the record store",
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
            await self._audit.record(
                AuditEventName.VERIFY_ERROR,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error_type=type(e).__name__,
            )
            raise DatabaseError() from e

        await self._audit.record(
            AuditEventName.VERIFY_SUCCESS,
            correlation_id,
            email=masked,
            ip=masked_ip,
            record_id=record.id,
        )
        return grant

    def _matches(self, code: str, record: PasswordResetRecord) -> bool:
        # Malformed codes count as a failed attempt without touching bcrypt
        if (
            not isinstance(code, str)
            or len(code) != self._policy.otp_length
            or not code.isascii()
            or not code.isdigit()
        ):
            return False
        return self._hasher.verify(code, record.credential_hash)

    async def _count_failure(
        self,
        record: PasswordResetRecord,
        masked: str,
        masked_ip: str,
        correlation_id: Optional[str],
    ) -> None:
        """Records one failed attempt and always raises."""
        async with self._tx.atomic():
            attempts = await self._record_repository.increment_attempts(
                record.id, record.credential_hash, self._policy.max_attempts
            )

        if attempts is None:
            # A concurrent guess consumed the last attempt or the record moved on
            await self._audit.record(
                AuditEventName.VERIFY_MAX_ATTEMPTS,
                correlation_id,
                email=masked,
                ip=masked_ip,
                record_id=record.id,
            )
            raise AttemptsExhaustedError()

        remaining = max(0, self._policy.max_attempts - attempts)
        await self._audit.record(
            AuditEventName.VERIFY_FAILED,
            correlation_id,
            email=masked,
            ip=masked_ip,
            record_id=record.id,
            attempts=attempts,
        )
        raise InvalidCredentialError(
            f"Invalid code. {remaining} attempts remaining.",
            remaining_attempts=remaining,
        )
