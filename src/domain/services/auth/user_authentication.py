"""User Authentication Domain Service.

A deliberately small login: it exists so that the outcome of a password
reset can be observed end to end. There is no registration, refresh or
session management.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from src.core.exceptions import InvalidCredentialsError
from src.domain.events.password_reset_events import AuditEventName
from src.domain.interfaces.repositories import IUserRepository
from src.domain.interfaces.services import IAccessTokenService, ICredentialHasher
from src.domain.security.logging_service import secure_logging_service
from src.domain.services.password_reset.audit import ResetAuditTrail
from src.domain.value_objects.email import Email

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LoginResult:
    access_token: str
    expires_in_seconds: int
    token_type: str = "bearer"


class UserAuthenticationService:
    """Checks email and password and issues a signed access token.

    Unknown emails, inactive accounts and wrong passwords all produce the
    same ``InvalidCredentialsError``. A dummy hash is verified for unknown
    emails so the response time does not reveal whether the account exists.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        hasher: ICredentialHasher,
        token_service: IAccessTokenService,
        audit: ResetAuditTrail,
    ):
        self._user_repository = user_repository
        self._hasher = hasher
        self._token_service = token_service
        self._audit = audit
        self._dummy_hash: Optional[str] = None

        logger.info("UserAuthenticationService initialized")

    async def authenticate(
        self,
        email: str,
        password: str,
        ip: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> LoginResult:
        """Authenticate a user and return an access token.

        Raises:
            InvalidCredentialsError: For any credential or account-state failure.
        """
        try:
            normalized = Email(email).value
        except (TypeError, ValueError):
            normalized = None

        masked = secure_logging_service.mask_email(normalized or "")
        masked_ip = secure_logging_service.mask_ip_address(ip or "unknown")

        user = await self._user_repository.get_by_email(normalized) if normalized else None

        if user is None:
            self._hasher.verify(password or "", self._get_dummy_hash())
            authenticated = False
        else:
            authenticated = self._hasher.verify(password or "", user.hashed_password) and user.is_active

        if not authenticated:
            await self._audit.record(
                AuditEventName.LOGIN_FAILED, correlation_id, email=masked, ip=masked_ip
            )
            raise InvalidCredentialsError()

        await self._audit.record(
            AuditEventName.LOGIN_SUCCESS, correlation_id, email=masked, ip=masked_ip, user_id=user.id
        )
        logger.info("Authentication successful", user_id=user.id, correlation_id=correlation_id)
        return LoginResult(
            access_token=self._token_service.create_access_token(user.id, user.email),
            expires_in_seconds=self._token_service.expires_in_seconds,
        )

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash("resetgate-timing-equalizer")
        return self._dummy_hash
