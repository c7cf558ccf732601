"""Reset Password endpoint.

Consumes a reset token and sets the new password. The token is single-use;
a replay receives the "expired" error.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.auth.schemas import MessageResponse, ResetPasswordRequest
from src.adapters.api.v1.auth.utils import client_ip_of, correlation_id_of
from src.core.ratelimiter import AUTH_RATE_LIMIT, limiter
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.password_reset_finalizer import PasswordResetFinalizer
from src.infrastructure.dependency_injection.auth_dependencies import get_password_reset_finalizer

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Set a new password with a reset token",
    responses={
        400: {"description": "Password too short, token invalid or expired"},
        429: {"description": "Too many requests from this address"},
    },
)
@limiter.limit(AUTH_RATE_LIMIT)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    finalizer: PasswordResetFinalizer = Depends(get_password_reset_finalizer),
) -> MessageResponse:
    correlation_id = correlation_id_of(request)
    client_ip = client_ip_of(request)

    logger.bind(
        correlation_id=correlation_id,
        client_ip=secure_logging_service.mask_ip_address(client_ip),
        endpoint="reset_password",
    ).info("Password reset finalization initiated")

    ack = await finalizer.finalize(
        email=payload.email,
        reset_token=payload.reset_token,
        new_password=payload.new_password,
        ip=client_ip,
        correlation_id=correlation_id,
    )
    return MessageResponse(message=ack.message)
