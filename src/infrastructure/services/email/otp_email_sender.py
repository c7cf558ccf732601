"""Plain-text email delivery through FastMail.

In test mode messages are logged (recipient masked, body omitted) instead of
being sent, which is how development and test environments run.
"""

from typing import Optional

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from src.core.config.email import EmailSettings
from src.core.exceptions import EmailServiceError
from src.domain.interfaces.services import IEmailSender
from src.domain.security.logging_service import secure_logging_service

logger = structlog.get_logger(__name__)


def build_connection_config(email_settings: EmailSettings) -> ConnectionConfig:
    """Maps the application's email settings onto a FastMail connection."""
    password = email_settings.EMAIL_SMTP_PASSWORD.get_secret_value() if email_settings.EMAIL_SMTP_PASSWORD else ""
    return ConnectionConfig(
        MAIL_USERNAME=email_settings.EMAIL_SMTP_USERNAME or "",
        MAIL_PASSWORD=password,
        MAIL_FROM=email_settings.EMAIL_FROM_EMAIL,
        MAIL_PORT=email_settings.EMAIL_SMTP_PORT,
        MAIL_SERVER=email_settings.EMAIL_SMTP_HOST,
        MAIL_FROM_NAME=email_settings.EMAIL_FROM_NAME,
        MAIL_STARTTLS=email_settings.EMAIL_SMTP_USE_TLS,
        MAIL_SSL_TLS=email_settings.EMAIL_SMTP_USE_SSL,
        USE_CREDENTIALS=bool(email_settings.EMAIL_SMTP_USERNAME and email_settings.EMAIL_SMTP_PASSWORD),
        VALIDATE_CERTS=True,
    )


class SmtpEmailSender(IEmailSender):
    """Sends reset codes over SMTP.

    Args:
        config: FastMail connection settings; may be None in test mode.
        test_mode: Log instead of sending.
    """

    def __init__(self, config: Optional[ConnectionConfig], test_mode: bool = False):
        self._fastmail = FastMail(config) if config is not None else None
        self._test_mode = test_mode

        logger.info("SmtpEmailSender initialized", test_mode=test_mode)

    async def send(self, to: str, subject: str, body: str) -> bool:
        masked = secure_logging_service.mask_email(to)

        if self._test_mode:
            logger.info("Email sent in test mode", to_email=masked, subject=subject, body_length=len(body))
            return True

        if self._fastmail is None:
            raise EmailServiceError("FastMail not configured for production mode")

        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=body,
            subtype=MessageType.plain,
        )
        try:
            await self._fastmail.send_message(message)
        except (ConnectionErrors, OSError) as e:
            logger.error("Failed to send email", to_email=masked, subject=subject, error_type=type(e).__name__)
            raise EmailServiceError(f"Failed to send email: {type(e).__name__}") from e

        logger.info("Email sent successfully", to_email=masked, subject=subject)
        return True
