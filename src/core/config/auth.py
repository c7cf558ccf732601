"""Authentication settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """Settings for hashing and login tokens.

    The reset protocol limits (code length, lifetimes, attempts, caps) are
    not configurable here; they are fixed in
    ``src.domain.value_objects.reset_policy.ResetPolicy``.

    Security Note:
        - BCRYPT_ROUNDS below 10 is only acceptable in tests.
    """

    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)

    JWT_ISSUER: str = "resetgate"
    JWT_AUDIENCE: str = "resetgate:api:v1"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=15, ge=1)
