from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for custom application exceptions,
translating them into the service's ``{"ok": false, "error": ...}`` envelope.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from structlog import get_logger

from src.core.exceptions import (
    AuthenticationError,
    InternalError,
    ResetCredentialError,
    ResetGateError,
    ThrottledError,
    ValidationError,
)
from src.domain.security.logging_service import secure_logging_service

__all__ = [
    "error_body",
    "validation_error_handler",
    "request_validation_error_handler",
    "throttled_error_handler",
    "rate_limit_exception_handler",
    "reset_credential_error_handler",
    "authentication_error_handler",
    "internal_error_handler",
    "sqlalchemy_error_handler",
    "resetgate_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _client_ip(request: Request) -> str:
    return secure_logging_service.mask_ip_address(request.client.host if request.client else "unknown")


def error_body(exc: ResetGateError) -> dict:
    """Builds the JSON error envelope shared by every failure response."""
    body = {"ok": False, "error": exc.message, "code": exc.code}
    wait_seconds = getattr(exc, "wait_seconds", None)
    if wait_seconds is not None:
        body["waitSeconds"] = wait_seconds
    reason = getattr(exc, "reason", None)
    if reason is not None:
        body["reason"] = reason
    remaining = getattr(exc, "remaining_attempts", None)
    if remaining is not None:
        body["remainingAttempts"] = remaining
    return body


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError` (including `PasswordPolicyError`), returning `400`."""
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Renders FastAPI body validation failures as `400` with the first problem.

    The reset endpoints promise a 400 for a missing or malformed email, so the
    framework's default 422 is replaced here.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    if field == "email":
        message = "Valid email is required"
    else:
        message = f"Invalid request: {field} {first.get('msg', 'is invalid')}".strip()
    logger.info("Request validation failed", path=request.url.path, field=field)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": message, "code": "validation_error"},
    )


async def throttled_error_handler(request: Request, exc: ThrottledError) -> JSONResponse:
    """Handles cooldown and hourly-cap rejections, returning `429 Too Many Requests`."""
    logger.warning(
        "Reset request throttled",
        error=exc.code,
        reason=exc.reason,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    headers = {"Retry-After": str(exc.wait_seconds)} if exc.wait_seconds else None
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body(exc),
        headers=headers,
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handles slowapi's per-IP endpoint limit, returning `429`."""
    logger.warning(
        "Endpoint rate limit exceeded",
        client_ip=_client_ip(request),
        path=request.url.path,
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "ok": False,
            "error": "Too many requests, please try again later.",
            "code": "http_rate_limited",
        },
    )


async def reset_credential_error_handler(request: Request, exc: ResetCredentialError) -> JSONResponse:
    """Handles OTP and reset-token failures, returning `400 Bad Request`."""
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(exc))


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`."""
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=error_body(exc))


async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
    """Handles `InternalError`, returning `500` without internal details."""
    logger.error("Internal error", error=exc.code, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_body(exc))


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Last line of defence for store errors that escaped the domain services."""
    logger.error("Unhandled database error", error_type=type(exc).__name__, path=request.url.path)
    return await internal_error_handler(request, InternalError())


async def resetgate_error_handler(request: Request, exc: ResetGateError) -> JSONResponse:
    """Catch-all for `ResetGateError` subclasses without a dedicated handler."""
    logger.error("Unhandled application error", error=exc.code, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so each family
    handler also covers its subclasses.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ThrottledError, throttled_error_handler)
    app.add_exception_handler(ResetCredentialError, reset_credential_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(InternalError, internal_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(ResetGateError, resetgate_error_handler)
