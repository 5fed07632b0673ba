# learnify/utils/mailer.py
import logging
from typing import Any, Dict

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import SecretStr

from learnify.core.config import Settings
from learnify.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class MailSender:
    """Sends transactional email (password reset codes) over SMTP."""

    def __init__(self, settings: Settings):
        self.conf = ConnectionConfig(
            MAIL_USERNAME=settings.mail_username,
            MAIL_PASSWORD=SecretStr(settings.mail_password),
            MAIL_FROM=settings.mail_from_address,
            MAIL_FROM_NAME=settings.mail_from_name,
            MAIL_PORT=settings.mail_port,
            MAIL_SERVER=settings.mail_host,
            MAIL_STARTTLS=settings.mail_starttls,
            MAIL_SSL_TLS=settings.mail_ssl_tls,
            USE_CREDENTIALS=bool(settings.mail_password),
            VALIDATE_CERTS=True,
            SUPPRESS_SEND=int(settings.mail_suppress_send),
        )
        self.fastmail = FastMail(self.conf)

    async def send(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message)
        except Exception as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")
            raise ExternalServiceError("Error sending email")

        logger.info(f"Sent '{subject}' to {to}")
        return {"message": f"Email '{subject}' sent to {to}"}


def reset_password_email(name: str, code: str, ttl_minutes: int) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 480px; margin: auto;">
      <h2>Password reset</h2>
      <p>Hi {name},</p>
      <p>Use the code below to reset your password. It expires in {ttl_minutes} minutes.</p>
      <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{code}</p>
      <p>If you did not request a password reset you can ignore this email.</p>
    </div>
    """
