"""Exchanges a verified OTP for a short-lived reset token."""

import structlog

from src.core.exceptions import ResetTokenAlreadyIssuedError
from src.domain.entities.password_reset_record import PasswordResetRecord
from src.domain.interfaces.repositories import IPasswordResetRecordRepository
from src.domain.interfaces.services import (
    IClock,
    ICredentialHasher,
    IResetCodeGenerator,
    ITransactionManager,
)
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import ResetTokenGrant

logger = structlog.get_logger(__name__)


class ResetTokenIssuer:
    """Swaps the OTP hash of a record for a reset-token hash, exactly once.

    The swap is a single conditional update guarded on the hash the verifier
    observed. Of two concurrent correct verifications only one update
    matches; the other gets ``ResetTokenAlreadyIssuedError``.
    """

    def __init__(
        self,
        record_repository: IPasswordResetRecordRepository,
        transaction_manager: ITransactionManager,
        code_generator: IResetCodeGenerator,
        hasher: ICredentialHasher,
        clock: IClock,
        policy: ResetPolicy,
    ):
        self._record_repository = record_repository
        self._tx = transaction_manager
        self._code_generator = code_generator
        self._hasher = hasher
        self._clock = clock
        self._policy = policy

    async def issue(self, record: PasswordResetRecord) -> ResetTokenGrant:
        """Issues a reset token for a record whose OTP was just verified.

        Args:
            record: The record as read by the verifier.

        Returns:
            ResetTokenGrant: The only place the plaintext token exists.

        Raises:
            ResetTokenAlreadyIssuedError: If the record changed since it was read.
        """
        token = self._code_generator.generate_reset_token(self._policy.reset_token_bytes)
        now = self._clock.now()

        async with self._tx.atomic():
            swapped = await self._record_repository.swap_credential(
                record_id=record.id,
                observed_hash=record.credential_hash,
                new_hash=self._hasher.hash(token),
                new_expires_at=now + self._policy.reset_token_ttl,
                now=now,
                max_attempts=self._policy.max_attempts,
            )

        if not swapped:
            logger.warning("Reset token swap lost a race", record_id=record.id)
            raise ResetTokenAlreadyIssuedError()

        logger.info("Reset token issued", record_id=record.id, user_id=record.user_id)
        return ResetTokenGrant(
            reset_token=token,
            expires_in_seconds=self._policy.reset_token_ttl_seconds,
        )
