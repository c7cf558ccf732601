"""Forgot Password endpoint.

Starts a reset by issuing a one-time code. The API layer stays thin: the
cooldown, hourly caps, account lookup and delivery all happen in
``OtpIssuer``. Every admitted request receives the same body whether or not
the email is registered.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.auth.schemas import ForgotPasswordRequest, ForgotPasswordResponse
from src.adapters.api.v1.auth.utils import client_ip_of, correlation_id_of
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.otp_issuer import OtpIssuer
from src.infrastructure.dependency_injection.auth_dependencies import get_otp_issuer

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=ForgotPasswordResponse,
    status_code=status.HTTP_200_OK,
    summary="Request a password reset code",
    responses={
        200: {"description": "Code sent (or would be sent if the email is registered)"},
        400: {"description": "Missing or malformed email"},
        429: {"description": "Cooldown active or hourly limit reached"},
    },
)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    otp_issuer: OtpIssuer = Depends(get_otp_issuer),
) -> ForgotPasswordResponse:
    """Request a reset code for ``payload.email``.

    Raises:
        ValidationError: Malformed email (400).
        CooldownError / RateLimitExceededError: Throttled (429).
    """
    correlation_id = correlation_id_of(request)
    client_ip = client_ip_of(request)

    request_logger = logger.bind(
        correlation_id=correlation_id,
        client_ip=secure_logging_service.mask_ip_address(client_ip),
        endpoint="forgot_password",
    )
    request_logger.info(
        "Password reset request initiated",
        email_masked=secure_logging_service.mask_email(payload.email.strip().lower()),
    )

    ack = await otp_issuer.request_reset(
        email=payload.email,
        ip=client_ip,
        correlation_id=correlation_id,
    )

    request_logger.info("Password reset request handled")
    return ForgotPasswordResponse(message=ack.message, cooldown_seconds=ack.cooldown_seconds)
