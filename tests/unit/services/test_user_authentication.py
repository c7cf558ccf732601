import pytest
from jose import jwt

from src.core.exceptions import InvalidCredentialsError
from src.domain.events.password_reset_events import AuditEventName
from tests.factories.user import DEFAULT_PASSWORD, persist_user


class TestUserAuthenticationService:
    @pytest.mark.asyncio
    async def test_valid_credentials_return_signed_token(self, services, db_session, hasher, clock, audit_sink):
        # Arrange
        user = await persist_user(db_session, hasher, email="alice@example.com")

        # Act
        result = await services.authenticator.authenticate("Alice@Example.com", DEFAULT_PASSWORD)

        # Assert
        assert result.token_type == "bearer"
        assert result.expires_in_seconds == 900
        claims = jwt.get_unverified_claims(result.access_token)
        assert claims["sub"] == str(user.id)
        assert claims["email"] == "alice@example.com"
        assert AuditEventName.LOGIN_SUCCESS in audit_sink.names()

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected(self, services, db_session, hasher, audit_sink):
        await persist_user(db_session, hasher, email="alice@example.com")

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await services.authenticator.authenticate("alice@example.com", "WrongPass123")

        assert exc_info.value.message == "invalid credentials"
        assert AuditEventName.LOGIN_FAILED in audit_sink.names()

    @pytest.mark.asyncio
    async def test_unknown_email_gets_same_error(self, services, mocker, hasher):
        spy = mocker.spy(hasher, "verify")

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await services.authenticator.authenticate("ghost@example.com", DEFAULT_PASSWORD)

        assert exc_info.value.message == "invalid credentials"
        # A dummy hash is still checked so timing does not reveal the miss
        assert spy.call_count == 1

    @pytest.mark.asyncio
    async def test_inactive_account_is_rejected(self, services, db_session, hasher):
        await persist_user(db_session, hasher, email="dormant@example.com", is_active=False)

        with pytest.raises(InvalidCredentialsError):
            await services.authenticator.authenticate("dormant@example.com", DEFAULT_PASSWORD)

    @pytest.mark.asyncio
    async def test_malformed_email_is_rejected(self, services):
        with pytest.raises(InvalidCredentialsError):
            await services.authenticator.authenticate("not-an-email", DEFAULT_PASSWORD)
