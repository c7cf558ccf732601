"""Verify OTP endpoint.

Exchanges a correct one-time code for a short-lived reset token. Throttled
per client address in addition to the per-code attempt limit.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.auth.schemas import VerifyOtpRequest, VerifyOtpResponse
from src.adapters.api.v1.auth.utils import client_ip_of, correlation_id_of
from src.core.ratelimiter import AUTH_RATE_LIMIT, limiter
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.otp_verifier import OtpVerifier
from src.infrastructure.dependency_injection.auth_dependencies import get_otp_verifier

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=VerifyOtpResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify a reset code",
    responses={
        400: {"description": "No active request, wrong code or attempts exhausted"},
        429: {"description": "Too many requests from this address"},
    },
)
@limiter.limit(AUTH_RATE_LIMIT)
async def verify_otp(
    request: Request,
    payload: VerifyOtpRequest,
    otp_verifier: OtpVerifier = Depends(get_otp_verifier),
) -> VerifyOtpResponse:
    correlation_id = correlation_id_of(request)
    client_ip = client_ip_of(request)

    logger.bind(
        correlation_id=correlation_id,
        client_ip=secure_logging_service.mask_ip_address(client_ip),
        endpoint="verify_otp",
    ).info("Reset code verification initiated")

    grant = await otp_verifier.verify(
        email=payload.email,
        code=payload.otp.strip(),
        ip=client_ip,
        correlation_id=correlation_id,
    )
    return VerifyOtpResponse(reset_token=grant.reset_token, expires_in=grant.expires_in_seconds)
