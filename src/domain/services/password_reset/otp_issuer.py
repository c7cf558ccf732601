"""OTP Issuer Service.

This domain service handles the first step of the reset flow: admitting a
request, replacing any previous code for the email and delivering a fresh
one-time code.
"""

import asyncio
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.core.exceptions import (
    CooldownError,
    DatabaseError,
    EmailServiceError,
    RateLimitExceededError,
    ValidationError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.events.password_reset_events import AuditEventName
from src.domain.interfaces.repositories import IPasswordResetRecordRepository, IUserRepository
from src.domain.interfaces.services import (
    IClock,
    ICredentialHasher,
    IEmailSender,
    IResetCodeGenerator,
    ITransactionManager,
)
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.audit import ResetAuditTrail
from src.domain.services.password_reset.cooldown_guard import CooldownGuard
from src.domain.services.password_reset.rate_limiter import EMAIL_RATE_LIMITED, ResetRateLimiter
from src.domain.value_objects.email import Email
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import GENERIC_RESET_MESSAGE, GenericAck

logger = structlog.get_logger(__name__)

EMAIL_CAP_MESSAGE = "Too many reset requests for this email. Please try again in 1 hour."
IP_CAP_MESSAGE = "Too many reset requests from this network. Please try again in 1 hour."


class OtpIssuer:
    """Service for handling password reset requests.

    Every admitted request gets the same ``GenericAck`` whether or not the
    email belongs to an account, so responses cannot be used to probe for
    registered addresses. Throttling is applied before the account lookup
    for the same reason.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        record_repository: IPasswordResetRecordRepository,
        transaction_manager: ITransactionManager,
        cooldown_guard: CooldownGuard,
        rate_limiter: ResetRateLimiter,
        code_generator: IResetCodeGenerator,
        hasher: ICredentialHasher,
        email_sender: IEmailSender,
        audit: ResetAuditTrail,
        clock: IClock,
        policy: ResetPolicy,
        product_name: str = "ResetGate",
    ):
        self._user_repository = user_repository
        self._record_repository = record_repository
        self._tx = transaction_manager
        self._cooldown_guard = cooldown_guard
        self._rate_limiter = rate_limiter
        self._code_generator = code_generator
        self._hasher = hasher
        self._email_sender = email_sender
        self._audit = audit
        self._clock = clock
        self._policy = policy
        self._product_name = product_name

        logger.info("OtpIssuer initialized")

    async def request_reset(
        self,
        email: str,
        ip: Optional[str],
        correlation_id: Optional[str] = None,
    ) -> GenericAck:
        """Request a password reset code for the given email address.

        Workflow:
        1. Normalize the email
        2. Enforce the per-email cooldown
        3. Enforce the hourly caps and count the request
        4. Look up the account (unknown accounts get the same ack)
        5. Invalidate older codes and store the new one atomically
        6. Deliver the code, absorbing delivery failures

        Args:
            email: Raw email address from the client.
            ip: Origin address of the request.
            correlation_id: Optional correlation ID for request tracking.

        Returns:
            GenericAck: Identical for every admitted request.

        Raises:
            ValidationError: If the email is malformed.
            CooldownError: If the previous request is too recent.
            RateLimitExceededError: If an hourly cap is reached.
            DatabaseError: If the record store fails.
        """
        try:
            normalized = Email(email).value
        except (TypeError, ValueError) as e:
            raise ValidationError("Valid email is required") from e

        origin = ip or "unknown"
        masked = secure_logging_service.mask_email(normalized)
        masked_ip = secure_logging_service.mask_ip_address(origin)

        try:
            # Step 1: Cooldown, a pure read evaluated before any write
            decision = await self._cooldown_guard.check_cooldown(normalized)
            if not decision.allowed:
                await self._audit.record(
                    AuditEventName.RESET_COOLDOWN_BLOCKED,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                    wait_seconds=decision.wait_seconds,
                )
                raise CooldownError(decision.wait_seconds)

            # Step 2: Hourly caps; the request is counted when admitted
            async with self._tx.atomic():
                rate = await self._rate_limiter.check_and_count(normalized, origin)
            if not rate.allowed:
                await self._reject_rate_limited(rate.reason, masked, masked_ip, correlation_id)

            # Step 3: Account lookup
            user = await self._user_repository.get_by_email(normalized)
            if user is None or not user.is_active:
                await self._audit.record(
                    AuditEventName.RESET_UNKNOWN_EMAIL,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                )
                logger.info("Reset requested for unknown or inactive account", email_masked=masked)
                return self._ack()

            # Step 4: Replace any previous code with a fresh one
            code = self._code_generator.generate_otp(self._policy.otp_length)
            now = self._clock.now()
            record = PasswordResetRecord(
                user_id=user.id,
                email=normalized,
                credential_hash=self._hasher.hash(code),
                phase=ResetPhase.OTP_PENDING,
                created_at=now,
                expires_at=now + self._policy.otp_ttl,
                attempts=0,
                used=False,
                origin_ip=origin,
            )
            try:
                async with self._tx.atomic():
                    invalidated = await self._record_repository.invalidate_unused_for_email(normalized)
                    await self._record_repository.insert(record)
            except IntegrityError:
                # A concurrent request for the same email inserted first
                await self._audit.record(
                    AuditEventName.RESET_CONCURRENT_REQUEST,
                    correlation_id,
                    email=masked,
                    ip=masked_ip,
                )
                logger.warning("Concurrent reset request lost the insert race", email_masked=masked)
                return self._ack()

            logger.info(
                "Reset code issued",
                user_id=user.id,
                invalidated_previous=invalidated,
                correlation_id=correlation_id,
            )
        except SQLAlchemyError as e:
            logger.error(
                "Reset request failed on the record store",
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
            await self._audit.record(
                AuditEventName.RESET_ERROR,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error_type=type(e).__name__,
            )
            raise DatabaseError() from e

        # Step 5: Delivery happens after commit and never changes the outcome
        await self._deliver(normalized, code, user.id, masked, masked_ip, correlation_id)
        return self._ack()

    def _ack(self) -> GenericAck:
        return GenericAck(message=GENERIC_RESET_MESSAGE, cooldown_seconds=self._policy.cooldown_seconds)

    async def _reject_rate_limited(
        self,
        reason: Optional[str],
        masked: str,
        masked_ip: str,
        correlation_id: Optional[str],
    ) -> None:
        if reason == EMAIL_RATE_LIMITED:
            await self._audit.record(
                AuditEventName.RESET_RATE_LIMIT_EMAIL, correlation_id, email=masked, ip=masked_ip
            )
            raise RateLimitExceededError(EMAIL_CAP_MESSAGE, reason=reason)

        await self._audit.record(
            AuditEventName.RESET_RATE_LIMIT_IP, correlation_id, email=masked, ip=masked_ip
        )
        raise RateLimitExceededError(IP_CAP_MESSAGE, reason=reason)

    async def _deliver(
        self,
        email: str,
        code: str,
        user_id: int,
        masked: str,
        masked_ip: str,
        correlation_id: Optional[str],
    ) -> None:
        """Sends the code with a bounded timeout; failures are audited, not raised."""
        ttl_minutes = int(self._policy.otp_ttl.total_seconds() // 60)
        subject = f"Password Reset Code - {self._product_name}"
        body = (
            f"Your password reset code is: {code}\n\n"
            f"This code expires in {ttl_minutes} minutes.\n\n"
            "If you did not request this, please ignore this email."
        )
        try:
            delivered = await asyncio.wait_for(
                self._email_sender.send(email, subject, body),
                timeout=self._policy.email_send_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("Reset code delivery timed out", user_id=user_id, correlation_id=correlation_id)
            await self._audit.record(
                AuditEventName.RESET_EMAIL_FAILED,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error="timeout",
            )
            return
        except EmailServiceError as e:
            logger.error(
                "Reset code delivery failed",
                user_id=user_id,
                error=e.code,
                correlation_id=correlation_id,
            )
            await self._audit.record(
                AuditEventName.RESET_EMAIL_FAILED,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error=e.code,
            )
            return
        except Exception as e:
            # The record is already committed; the response must not reveal the account exists
            logger.exception(
                "Reset code delivery raised unexpectedly",
                user_id=user_id,
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
            await self._audit.record(
                AuditEventName.RESET_EMAIL_FAILED,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error=type(e).__name__,
            )
            return

        if not delivered:
            logger.error("Reset code delivery rejected by sender", user_id=user_id, correlation_id=correlation_id)
            await self._audit.record(
                AuditEventName.RESET_EMAIL_FAILED,
                correlation_id,
                email=masked,
                ip=masked_ip,
                error="rejected",
            )
            return

        await self._audit.record(
            AuditEventName.RESET_OTP_SENT,
            correlation_id,
            email=masked,
            ip=masked_ip,
            user_id=user_id,
        )
