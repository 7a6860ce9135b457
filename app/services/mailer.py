import logging
import smtplib
from email.message import EmailMessage

from app.core.config import settings

logger = logging.getLogger(__name__)


def build_text_body(link: str) -> str:
    return (
        f"Sign in to {settings.APP_NAME}:\n\n"
        f"{link}\n\n"
        f"This link expires in {settings.MAGIC_LINK_EXPIRE_MINUTES} minutes and can be used once.\n"
    )


def send_magic_link(email: str, link: str) -> None:
    if not settings.SMTP_HOST:
        logger.info("SMTP not configured; magic link for %s: %s", email, link)
        return

    msg = EmailMessage()
    msg["Subject"] = f"Your {settings.APP_NAME} sign-in link"
    msg["From"] = settings.SMTP_FROM
    msg["To"] = email
    msg.set_content(build_text_body(link))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
        server.send_message(msg)
    logger.info("Magic link sent to %s", email)
