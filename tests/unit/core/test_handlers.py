"""Tests for the JSON error envelope and the status mapping of each family."""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from src.core.exceptions import (
    AttemptsExhaustedError,
    CooldownError,
    DatabaseError,
    InvalidCredentialError,
    InvalidCredentialsError,
    PasswordPolicyError,
    RateLimitExceededError,
    ResetGateError,
)
from src.core.handlers import error_body, register_exception_handlers


class _Payload(BaseModel):
    email: str
    otp: str


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    errors = {
        "cooldown": CooldownError(42),
        "email-cap": RateLimitExceededError("Too many reset requests for this email.", reason="email_rate_limited"),
        "wrong-code": InvalidCredentialError("Invalid code. 3 attempts remaining.", remaining_attempts=3),
        "exhausted": AttemptsExhaustedError(),
        "policy": PasswordPolicyError(),
        "login": InvalidCredentialsError(),
        "database": DatabaseError(),
        "generic": ResetGateError("Something odd", code="odd"),
    }

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise errors[name]

    @app.get("/raw-db")
    async def raw_db():
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    @app.post("/validate")
    async def validate(payload: _Payload):
        return {"ok": True}

    return app


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=_build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestErrorBody:
    def test_includes_optional_fields_only_when_set(self):
        assert error_body(AttemptsExhaustedError()) == {
            "ok": False,
            "error": "Too many failed attempts. Please request a new code.",
            "code": "attempts_exhausted",
        }

    def test_cooldown_body(self):
        body = error_body(CooldownError(17))

        assert body["waitSeconds"] == 17
        assert body["reason"] == "cooldown"
        assert body["error"] == "Please wait 17 seconds before requesting another code."


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_cooldown_is_429_with_retry_after(self, client):
        response = await client.get("/raise/cooldown")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json()["waitSeconds"] == 42

    @pytest.mark.asyncio
    async def test_hourly_cap_is_429_without_retry_after(self, client):
        response = await client.get("/raise/email-cap")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers
        assert response.json()["reason"] == "email_rate_limited"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["wrong-code", "exhausted", "policy", "generic"])
    async def test_client_errors_are_400(self, client, name):
        response = await client.get(f"/raise/{name}")

        assert response.status_code == 400
        assert response.json()["ok"] is False

    @pytest.mark.asyncio
    async def test_wrong_code_carries_remaining_attempts(self, client):
        body = (await client.get("/raise/wrong-code")).json()

        assert body["remainingAttempts"] == 3
        assert body["code"] == "invalid_credential"

    @pytest.mark.asyncio
    async def test_login_failure_is_401(self, client):
        response = await client.get("/raise/login")

        assert response.status_code == 401
        assert response.json()["error"] == "invalid credentials"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/raise/database", "/raw-db"])
    async def test_store_failures_are_500_without_details(self, client, path):
        response = await client.get(path)

        assert response.status_code == 500
        assert "connection lost" not in response.text
        assert response.json()["error"] == "Something went wrong. Please try again later."

    @pytest.mark.asyncio
    async def test_missing_email_is_400(self, client):
        response = await client.post("/validate", json={"otp": "123456"})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Valid email is required", "code": "validation_error"}

    @pytest.mark.asyncio
    async def test_other_missing_field_names_the_field(self, client):
        response = await client.post("/validate", json={"email": "a@example.com"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request: otp")
