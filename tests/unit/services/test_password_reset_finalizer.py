"""Tests for PasswordResetFinalizer.

Covers the length policy, single-use tokens, token expiry and the password
update that has to land in the same transaction as the consumption.
"""

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from src.core.exceptions import (
    DatabaseError,
    ExpiredOrConsumedError,
    InvalidCredentialError,
    PasswordPolicyError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord, ResetPhase
from src.domain.entities.user import User
from src.domain.events.password_reset_events import AuditEventName
from src.domain.value_objects.reset_results import PASSWORD_RESET_SUCCESS_MESSAGE
from tests.factories.user import DEFAULT_PASSWORD, persist_user
from tests.utils.fakes import FIXED_OTP

EMAIL = "alice@example.com"
IP = "203.0.113.7"
NEW_PASSWORD = "NewPass1234"


async def _reload_user(session, user_id) -> User:
    result = await session.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


async def _records(session):
    result = await session.execute(
        select(PasswordResetRecord)
        .order_by(PasswordResetRecord.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@pytest_asyncio.fixture
async def verified(services, db_session, hasher):
    """A user who has verified their code; returns (user, reset_token)."""
    user = await persist_user(db_session, hasher, email=EMAIL)
    await services.issuer.request_reset(EMAIL, IP)
    grant = await services.verifier.verify(EMAIL, FIXED_OTP)
    return user, grant.reset_token


class TestPasswordResetFinalizer:
    @pytest.mark.asyncio
    async def test_resets_password_with_valid_token(self, services, db_session, verified, hasher, clock, audit_sink):
        # Arrange
        user, token = verified

        # Act
        ack = await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD, ip=IP)

        # Assert
        assert ack.message == PASSWORD_RESET_SUCCESS_MESSAGE
        reloaded = await _reload_user(db_session, user.id)
        assert hasher.verify(NEW_PASSWORD, reloaded.hashed_password)
        assert not hasher.verify(DEFAULT_PASSWORD, reloaded.hashed_password)
        assert reloaded.password_changed_at == clock.now()

        (record,) = await _records(db_session)
        assert record.used is True
        assert record.phase == ResetPhase.CONSUMED
        assert AuditEventName.RESET_PASSWORD_CHANGED in audit_sink.names()

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, services, db_session, verified, hasher):
        user, token = verified
        await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)

        with pytest.raises(ExpiredOrConsumedError) as exc_info:
            await services.finalizer.finalize(EMAIL, token, "AnotherPass99")

        assert exc_info.value.message == "Reset link has expired. Please request a new one."
        reloaded = await _reload_user(db_session, user.id)
        assert hasher.verify(NEW_PASSWORD, reloaded.hashed_password)

    @pytest.mark.asyncio
    async def test_expired_token_is_refused(self, services, db_session, verified, clock, hasher):
        user, token = verified
        clock.advance(minutes=5, seconds=1)

        with pytest.raises(ExpiredOrConsumedError):
            await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)

        reloaded = await _reload_user(db_session, user.id)
        assert hasher.verify(DEFAULT_PASSWORD, reloaded.hashed_password)

    @pytest.mark.asyncio
    async def test_wrong_token_is_refused_without_consuming(self, services, db_session, verified, audit_sink):
        _, token = verified

        with pytest.raises(InvalidCredentialError) as exc_info:
            await services.finalizer.finalize(EMAIL, "f" * 64, NEW_PASSWORD)

        assert exc_info.value.message == "Invalid reset token."
        assert exc_info.value.code == "invalid_reset_token"
        assert AuditEventName.RESET_INVALID_TOKEN in audit_sink.names()

        # The genuine token still works afterwards
        ack = await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)
        assert ack.message == PASSWORD_RESET_SUCCESS_MESSAGE

    @pytest.mark.asyncio
    async def test_otp_cannot_be_used_as_reset_token(self, services, db_session, hasher):
        await persist_user(db_session, hasher, email=EMAIL)
        await services.issuer.request_reset(EMAIL, IP)

        with pytest.raises(InvalidCredentialError):
            await services.finalizer.finalize(EMAIL, FIXED_OTP, NEW_PASSWORD)

    @pytest.mark.asyncio
    async def test_no_request_at_all(self, services, audit_sink):
        with pytest.raises(ExpiredOrConsumedError):
            await services.finalizer.finalize("nobody@example.com", "f" * 64, NEW_PASSWORD)

        assert AuditEventName.RESET_EXPIRED_TOKEN in audit_sink.names()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "password, message",
        [
            ("", "Password must be at least 8 characters"),
            ("Short12", "Password must be at least 8 characters"),
            ("x" * 129, "Password must be at most 128 characters"),
        ],
    )
    async def test_password_policy_is_checked_first(self, services, verified, password, message):
        _, token = verified

        with pytest.raises(PasswordPolicyError) as exc_info:
            await services.finalizer.finalize(EMAIL, token, password)

        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_eight_character_password_is_accepted(self, services, verified):
        _, token = verified

        ack = await services.finalizer.finalize(EMAIL, token, "Exactly8")

        assert ack.message == PASSWORD_RESET_SUCCESS_MESSAGE

    @pytest.mark.asyncio
    async def test_policy_failure_leaves_token_usable(self, services, verified):
        _, token = verified
        with pytest.raises(PasswordPolicyError):
            await services.finalizer.finalize(EMAIL, token, "short")

        ack = await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)

        assert ack.message == PASSWORD_RESET_SUCCESS_MESSAGE

    @pytest.mark.asyncio
    async def test_concurrent_consumption_keeps_password_untouched(
        self, services, db_session, verified, hasher, mocker
    ):
        # Another request consumed the token between read and write
        user, token = verified
        mocker.patch.object(services.records, "consume", return_value=False)

        with pytest.raises(ExpiredOrConsumedError):
            await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)

        reloaded = await _reload_user(db_session, user.id)
        assert hasher.verify(DEFAULT_PASSWORD, reloaded.hashed_password)

    @pytest.mark.asyncio
    async def test_store_error_rolls_back_and_raises(self, services, db_session, verified, hasher, mocker, audit_sink):
        # Arrange: the password update fails after the record was consumed
        user, token = verified
        mocker.patch.object(
            services.users,
            "update_password",
            side_effect=OperationalError("UPDATE", {}, Exception("disk full")),
        )

        # Act
        with pytest.raises(DatabaseError):
            await services.finalizer.finalize(EMAIL, token, NEW_PASSWORD)

        # Assert: consumption was rolled back with the failed update
        (record,) = await _records(db_session)
        assert record.used is False
        assert record.phase == ResetPhase.TOKEN_PENDING
        assert AuditEventName.RESET_FINALIZE_ERROR in audit_sink.names()
