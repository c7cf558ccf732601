from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from src.core.exceptions import (
    AttemptsExhaustedError,
    DatabaseError,
    InvalidCredentialError,
    NoActiveRequestError,
    ResetTokenAlreadyIssuedError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.events.password_reset_events import AuditEventName
from tests.factories.user import persist_user
from tests.utils.fakes import FIXED_OTP

EMAIL = "alice@example.com"
IP = "203.0.113.7"


async def _current_record(session) -> PasswordResetRecord:
    result = await session.execute(
        select(PasswordResetRecord)
        .where(PasswordResetRecord.email == EMAIL)
        .order_by(PasswordResetRecord.id.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one()


@pytest_asyncio.fixture
async def issued(services, db_session, hasher):
    """A registered user with a freshly issued code."""
    user = await persist_user(db_session, hasher, email=EMAIL)
    await services.issuer.request_reset(EMAIL, IP)
    return user


class TestOtpVerifierSuccess:
    @pytest.mark.asyncio
    async def test_correct_code_yields_reset_token(self, services, db_session, issued, hasher, clock, audit_sink):
        # Act
        grant = await services.verifier.verify(EMAIL, FIXED_OTP, ip=IP)

        # Assert
        assert grant.expires_in_seconds == 300
        assert len(grant.reset_token) == 64

        record = await _current_record(db_session)
        assert record.phase == ResetPhase.TOKEN_PENDING
        assert record.used is False
        assert record.expires_at == clock.now() + timedelta(minutes=5)
        assert hasher.verify(grant.reset_token, record.credential_hash)
        assert not hasher.verify(FIXED_OTP, record.credential_hash)
        assert AuditEventName.VERIFY_SUCCESS in audit_sink.names()

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, services, issued):
        grant = await services.verifier.verify("ALICE@example.com ", FIXED_OTP)

        assert grant.reset_token

    @pytest.mark.asyncio
    async def test_code_cannot_be_verified_twice(self, services, issued):
        await services.verifier.verify(EMAIL, FIXED_OTP)

        with pytest.raises(NoActiveRequestError):
            await services.verifier.verify(EMAIL, FIXED_OTP)

    @pytest.mark.asyncio
    async def test_correct_code_after_some_failures_still_works(self, services, issued):
        for _ in range(4):
            with pytest.raises(InvalidCredentialError):
                await services.verifier.verify(EMAIL, "000000")

        grant = await services.verifier.verify(EMAIL, FIXED_OTP)

        assert grant.reset_token


class TestOtpVerifierFailures:
    @pytest.mark.asyncio
    async def test_wrong_code_reports_remaining_attempts(self, services, db_session, issued, audit_sink):
        # Act
        with pytest.raises(InvalidCredentialError) as exc_info:
            await services.verifier.verify(EMAIL, "000000")

        # Assert
        assert exc_info.value.remaining_attempts == 4
        assert exc_info.value.message == "Invalid code. 4 attempts remaining."
        assert (await _current_record(db_session)).attempts == 1
        assert AuditEventName.VERIFY_FAILED in audit_sink.names()

    @pytest.mark.asyncio
    async def test_remaining_attempts_count_down_to_zero(self, services, issued):
        remaining = []
        for _ in range(5):
            with pytest.raises(InvalidCredentialError) as exc_info:
                await services.verifier.verify(EMAIL, "000000")
            remaining.append(exc_info.value.remaining_attempts)

        assert remaining == [4, 3, 2, 1, 0]

    @pytest.mark.asyncio
    async def test_sixth_attempt_is_refused_even_with_correct_code(self, services, db_session, issued, audit_sink):
        # Arrange
        for _ in range(5):
            with pytest.raises(InvalidCredentialError):
                await services.verifier.verify(EMAIL, "000000")

        # Act
        with pytest.raises(AttemptsExhaustedError) as exc_info:
            await services.verifier.verify(EMAIL, FIXED_OTP)

        # Assert
        assert exc_info.value.message == "Too many failed attempts. Please request a new code."
        record = await _current_record(db_session)
        assert record.used is True
        assert record.attempts == 5
        assert AuditEventName.VERIFY_MAX_ATTEMPTS in audit_sink.names()

        # The closed record is gone for good
        with pytest.raises(NoActiveRequestError):
            await services.verifier.verify(EMAIL, FIXED_OTP)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("malformed", ["12345", "1234567", "12ab56", "４８２９１３"])
    async def test_malformed_code_counts_as_failed_attempt(self, services, db_session, issued, malformed):
        with pytest.raises(InvalidCredentialError):
            await services.verifier.verify(EMAIL, malformed)

        assert (await _current_record(db_session)).attempts == 1

    @pytest.mark.asyncio
    async def test_no_request_for_email(self, services, audit_sink):
        with pytest.raises(NoActiveRequestError) as exc_info:
            await services.verifier.verify("nobody@example.com", FIXED_OTP)

        assert exc_info.value.message == "No valid reset request found. Please request a new code."
        assert audit_sink.names() == [AuditEventName.VERIFY_NO_VALID_OTP]

    @pytest.mark.asyncio
    async def test_invalid_email_is_treated_as_no_request(self, services):
        with pytest.raises(NoActiveRequestError):
            await services.verifier.verify("not-an-email", FIXED_OTP)

    @pytest.mark.asyncio
    async def test_expired_code_is_refused(self, services, issued, clock):
        clock.advance(minutes=10, seconds=1)

        with pytest.raises(NoActiveRequestError):
            await services.verifier.verify(EMAIL, FIXED_OTP)

    @pytest.mark.asyncio
    async def test_superseded_code_no_longer_works(self, services, issued, clock, code_generator):
        # Arrange: a second request replaces the first code
        code_generator.otp = "222222"
        clock.advance(seconds=61)
        await services.issuer.request_reset(EMAIL, IP)

        # Act / Assert
        with pytest.raises(InvalidCredentialError):
            await services.verifier.verify(EMAIL, FIXED_OTP)
        grant = await services.verifier.verify(EMAIL, "222222")
        assert grant.reset_token

    @pytest.mark.asyncio
    async def test_lost_token_swap_is_reported(self, services, issued, mocker, audit_sink):
        mocker.patch.object(services.records, "swap_credential", return_value=False)

        with pytest.raises(ResetTokenAlreadyIssuedError):
            await services.verifier.verify(EMAIL, FIXED_OTP)

        assert AuditEventName.VERIFY_TOKEN_ALREADY_ISSUED in audit_sink.names()
        assert AuditEventName.VERIFY_SUCCESS not in audit_sink.names()

    @pytest.mark.asyncio
    async def test_lost_increment_race_reports_exhaustion(self, services, issued, mocker):
        # Another guess consumed the last attempt between read and write
        mocker.patch.object(services.records, "increment_attempts", return_value=None)

        with pytest.raises(AttemptsExhaustedError):
            await services.verifier.verify(EMAIL, "000000")

    @pytest.mark.asyncio
    async def test_store_error_becomes_database_error(self, services, mocker, audit_sink):
        mocker.patch.object(
            services.records,
            "get_active_for_email",
            side_effect=OperationalError("SELECT", {}, Exception("connection lost")),
        )

        with pytest.raises(DatabaseError):
            await services.verifier.verify(EMAIL, FIXED_OTP)

        assert AuditEventName.VERIFY_ERROR in audit_sink.names()
