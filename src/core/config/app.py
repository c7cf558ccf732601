"""
Application-specific settings.
"""
from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_SECRET_KEY = "change-me-in-production-this-is-not-a-secret-key"


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, debug mode, and CORS origins.

    Security Note:
        - Ensure ALLOWED_ORIGINS is explicitly set to trusted domains in production.
        - SECRET_KEY signs login tokens and must be replaced outside development;
          ``Settings.validate_required_fields`` refuses the default in staging
          and production.
    """
    PROJECT_NAME: str = "resetgate"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = Field(ge=1, default=1)
    RELOAD: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    SECRET_KEY: str = Field(default=DEFAULT_SECRET_KEY, min_length=32)
    ALLOWED_ORIGINS: Union[str, List[str]] = Field(default="http://0.0.0.0:8000")

    # Per-IP throttle on verify-otp, reset-password and login
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: str = "10/15minutes"
    RATE_LIMIT_STORAGE_URL: str = "memory://"
    RATE_LIMIT_STRATEGY: str = "fixed-window"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """
        Splits a comma-separated string of origins into a list.

        Args:
            v: Input value as a string or list of origins.

        Returns:
            List of stripped origin strings.
        """
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v
