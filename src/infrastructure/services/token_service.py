"""Access token issuance for the login endpoint, using python-jose."""

from datetime import timedelta

from jose import JWTError, jwt

from src.core.exceptions import InvalidCredentialsError
from src.domain.interfaces.services import IAccessTokenService, IClock


class JwtAccessTokenService(IAccessTokenService):
    """Signs short-lived HS256 access tokens.

    Args:
        secret_key: HMAC signing key.
        clock: Time source for ``iat`` and ``exp``.
        expires_minutes: Token lifetime.
        issuer: ``iss`` claim.
        audience: ``aud`` claim.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str,
        clock: IClock,
        expires_minutes: int = 15,
        issuer: str = "resetgate",
        audience: str = "resetgate:api:v1",
    ):
        self._secret_key = secret_key
        self._clock = clock
        self._expires = timedelta(minutes=expires_minutes)
        self._issuer = issuer
        self._audience = audience

    @property
    def expires_in_seconds(self) -> int:
        return int(self._expires.total_seconds())

    def create_access_token(self, user_id: int, email: str) -> str:
        now = self._clock.now()
        claims = {
            "sub": str(user_id),
            "email": email,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self._expires).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.ALGORITHM)

    def decode_access_token(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
            )
        except JWTError as e:
            raise InvalidCredentialsError("invalid token") from e
