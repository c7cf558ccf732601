"""
Database connection settings.
"""
import logging
from typing import Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class DatabaseSettings(BaseSettings):
    """
    Defines settings for connecting to the reset record store.

    When ``POSTGRES_HOST`` is set and ``DATABASE_URL`` is not, the URL is
    assembled for asyncpg. Without either, a local SQLite file is used
    through aiosqlite.

    Security Note:
        - POSTGRES_PASSWORD must never be logged or committed.
    Performance Note:
        - Tune POSTGRES_POOL_SIZE and POSTGRES_MAX_OVERFLOW to the deployment.
    """
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("")
    POSTGRES_DB: str = "resetgate"
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: int = Field(ge=1, le=65535, default=5432)
    POSTGRES_POOL_SIZE: int = Field(ge=1, default=10)
    POSTGRES_MAX_OVERFLOW: int = Field(ge=0, default=20)
    POSTGRES_POOL_TIMEOUT: float = Field(ge=1.0, default=5.0)
    SQLITE_PATH: str = "./resetgate.db"
    DATABASE_URL: str = Field(default="", validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_url(cls, v: Optional[str], info: ValidationInfo) -> str:
        """
        Assembles the database connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided database URL.
        """
        if v:
            return v

        values = info.data
        host = values.get("POSTGRES_HOST")
        if not host:
            return f"sqlite+aiosqlite:///{values.get('SQLITE_PATH', './resetgate.db')}"

        password = values.get("POSTGRES_PASSWORD")
        if not password or not password.get_secret_value():
            logger.warning("POSTGRES_PASSWORD not set during DATABASE_URL assembly.")

        url = (
            f"postgresql+asyncpg://{values.get('POSTGRES_USER')}:"
            f"{password.get_secret_value() if password else ''}@{host}:"
            f"{values.get('POSTGRES_PORT')}/{values.get('POSTGRES_DB')}"
        )
        logger.debug("Assembled DATABASE_URL (password masked for security).")
        return url
