from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import ResetTokenAlreadyIssuedError
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.interfaces.repositories import IPasswordResetRecordRepository
from src.domain.services.password_reset.reset_token_issuer import ResetTokenIssuer
from src.domain.value_objects.reset_policy import DEFAULT_RESET_POLICY
from src.infrastructure.database.transaction import SQLAlchemyTransactionManager


class TestResetTokenIssuer:
    @pytest.fixture
    def record(self, clock):
        return PasswordResetRecord(
            id=7,
            user_id=3,
            email="alice@example.com",
            credential_hash="$2b$04$observedhash",
            phase=ResetPhase.OTP_PENDING,
            created_at=clock.now(),
            expires_at=clock.now() + timedelta(minutes=10),
            attempts=2,
            used=False,
            origin_ip="203.0.113.7",
        )

    @pytest.fixture
    def records(self):
        return AsyncMock(spec=IPasswordResetRecordRepository)

    @pytest.fixture
    def issuer(self, records, clock, code_generator, hasher):
        session = AsyncMock()
        return ResetTokenIssuer(
            record_repository=records,
            transaction_manager=SQLAlchemyTransactionManager(session),
            code_generator=code_generator,
            hasher=hasher,
            clock=clock,
            policy=DEFAULT_RESET_POLICY,
        )

    @pytest.mark.asyncio
    async def test_swaps_credential_guarded_on_observed_hash(self, issuer, records, record, clock, hasher):
        # Arrange
        records.swap_credential.return_value = True

        # Act
        grant = await issuer.issue(record)

        # Assert
        kwargs = records.swap_credential.await_args.kwargs
        assert kwargs["record_id"] == 7
        assert kwargs["observed_hash"] == "$2b$04$observedhash"
        assert kwargs["new_expires_at"] == clock.now() + timedelta(minutes=5)
        assert kwargs["max_attempts"] == 5
        assert hasher.verify(grant.reset_token, kwargs["new_hash"])
        assert grant.expires_in_seconds == 300

    @pytest.mark.asyncio
    async def test_plaintext_token_is_never_stored(self, issuer, records, record):
        records.swap_credential.return_value = True

        grant = await issuer.issue(record)

        assert records.swap_credential.await_args.kwargs["new_hash"] != grant.reset_token

    @pytest.mark.asyncio
    async def test_lost_race_raises(self, issuer, records, record):
        records.swap_credential.return_value = False

        with pytest.raises(ResetTokenAlreadyIssuedError) as exc_info:
            await issuer.issue(record)

        assert exc_info.value.code == "token_already_issued"
