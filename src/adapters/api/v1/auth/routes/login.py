"""Login endpoint.

Email and password in, signed access token out. Used to confirm that a
password reset took effect.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.auth.schemas import LoginRequest, LoginResponse
from src.adapters.api.v1.auth.utils import client_ip_of, correlation_id_of
from src.core.ratelimiter import AUTH_RATE_LIMIT, limiter
from src.domain.services.auth.user_authentication import UserAuthenticationService
from src.infrastructure.dependency_injection.auth_dependencies import get_user_authentication_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in with email and password",
    responses={401: {"description": "Invalid credentials"}},
)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    auth_service: UserAuthenticationService = Depends(get_user_authentication_service),
) -> LoginResponse:
    result = await auth_service.authenticate(
        email=payload.email,
        password=payload.password,
        ip=client_ip_of(request),
        correlation_id=correlation_id_of(request),
    )
    return LoginResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in_seconds,
    )
