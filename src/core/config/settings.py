"""Main application settings and configuration management.

This module composes the settings from the different modules (app, database,
email, auth) into a single `Settings` class.

Environment Support:
- Development: Uses .env, email test mode and debug enabled
- Test: Uses .env.test, email test mode enabled
- Staging: Uses .env.staging, SMTP credentials and a real SECRET_KEY required
- Production: Uses .env.production, SMTP credentials and a real SECRET_KEY required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import DEFAULT_SECRET_KEY, AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .email import EmailSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)

ENV_FILES = {
    "development": ".env",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}


class Settings(AppSettings, DatabaseSettings, AuthSettings, EmailSettings):
    """The main settings class that aggregates all application configurations.

    Security Note:
        - Sensitive fields are SecretStr and are never logged.
    Usage:
        - Access settings via the singleton instance `settings`.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        if env in ("development", "test"):
            self.EMAIL_TEST_MODE = True
        if env == "development":
            self.DEBUG = True
        logger.info(
            "Application running in %s environment (email test mode: %s, debug: %s)",
            env,
            self.EMAIL_TEST_MODE,
            self.DEBUG,
        )

    def validate_required_fields(self) -> None:
        """Validates settings that must be provided outside development.

        Raises:
            ValueError: If a staging or production deployment still uses the
                default SECRET_KEY.
        """
        if self.APP_ENV in ("staging", "production") and self.SECRET_KEY == DEFAULT_SECRET_KEY:
            error_msg = "SECRET_KEY must be set explicitly in staging and production"
            logger.error(error_msg)
            raise ValueError(error_msg)

        try:
            self.validate_smtp_config()
        except ValueError as e:
            # Delivery failures are absorbed by the reset flow; degrade rather than refuse to start
            logger.error("Email configuration error: %s", e)


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration."""
    env = os.getenv("APP_ENV", "development")
    env_file = ENV_FILES.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info("Loading environment configuration from %s", env_file)
        return Settings(_env_file=env_file)
    if Path(".env").exists():
        logger.info("Loading environment configuration from .env (environment: %s)", env)
        return Settings()
    logger.info("No .env file found, using environment variables only (environment: %s)", env)
    return Settings()


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
settings.validate_required_fields()
