"""Email configuration settings for delivering reset codes."""

from typing import Optional

from pydantic import EmailStr, Field, SecretStr
from pydantic_settings import BaseSettings


class EmailSettings(BaseSettings):
    """Email configuration settings with secure defaults and validation.

    Attributes:
        EMAIL_SMTP_HOST: SMTP server hostname
        EMAIL_SMTP_PORT: SMTP server port (587 for STARTTLS, 465 for SSL)
        EMAIL_SMTP_USERNAME: SMTP authentication username
        EMAIL_SMTP_PASSWORD: SMTP authentication password (SecretStr)
        EMAIL_SMTP_USE_TLS: Enable STARTTLS (recommended)
        EMAIL_SMTP_USE_SSL: Enable implicit SSL (alternative to STARTTLS)
        EMAIL_FROM_EMAIL: Sender address
        EMAIL_FROM_NAME: Sender display name
        EMAIL_TEST_MODE: Log messages instead of sending them
    """

    EMAIL_SMTP_HOST: str = Field(default="localhost")
    EMAIL_SMTP_PORT: int = Field(default=587, ge=1, le=65535)
    EMAIL_SMTP_USERNAME: Optional[str] = Field(default=None)
    EMAIL_SMTP_PASSWORD: Optional[SecretStr] = Field(default=None)
    EMAIL_SMTP_USE_TLS: bool = Field(default=True)
    EMAIL_SMTP_USE_SSL: bool = Field(default=False)
    EMAIL_FROM_EMAIL: EmailStr = Field(default="noreply@example.com")
    EMAIL_FROM_NAME: str = Field(default="ResetGate")
    EMAIL_TEST_MODE: bool = Field(default=False)

    def validate_smtp_config(self) -> None:
        """Validate SMTP configuration for production use.

        Raises:
            ValueError: If SMTP configuration is invalid or insecure
        """
        if self.EMAIL_TEST_MODE or getattr(self, "APP_ENV", "development") not in {"production", "staging"}:
            return

        if not self.EMAIL_SMTP_USERNAME or not self.EMAIL_SMTP_PASSWORD:
            raise ValueError("EMAIL_SMTP_USERNAME and EMAIL_SMTP_PASSWORD are required in production")

        if not (self.EMAIL_SMTP_USE_TLS or self.EMAIL_SMTP_USE_SSL):
            raise ValueError("Either EMAIL_SMTP_USE_TLS or EMAIL_SMTP_USE_SSL must be enabled for security")

        if self.EMAIL_SMTP_USE_TLS and self.EMAIL_SMTP_USE_SSL:
            raise ValueError("Cannot enable both EMAIL_SMTP_USE_TLS and EMAIL_SMTP_USE_SSL simultaneously")
