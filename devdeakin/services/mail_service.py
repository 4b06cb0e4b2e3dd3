"""Newsletter confirmation mail relay over SMTP"""

import logging
from email.message import EmailMessage

import aiosmtplib

from devdeakin.config import settings
from devdeakin.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

SUBSCRIPTION_SUBJECT = "\U0001F389 Subscription!"
SUBSCRIPTION_TEXT = "Thanks for subscribing! You’ll be the first to hear from us!"
SUBSCRIPTION_HTML = (
    "<strong>Thanks for subscribing!</strong>"
    "<p>We’re excited to have you onboard</p>"
)


def build_subscription_message(recipient: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = recipient
    message["Subject"] = SUBSCRIPTION_SUBJECT
    message.set_content(SUBSCRIPTION_TEXT)
    message.add_alternative(SUBSCRIPTION_HTML, subtype="html")
    return message


class MailService:
    async def send(self, message: EmailMessage) -> None:
        if settings.DISABLE_EMAIL:
            logger.info("Email disabled; not sending %r to %s", message["Subject"], message["To"])
            return

        try:
            await aiosmtplib.send(
                message,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER or None,
                password=settings.SMTP_PASSWORD or None,
                use_tls=settings.SMTP_PORT == 465,
                start_tls=settings.SMTP_PORT == 587,
                timeout=30,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("SMTP delivery to %s failed: %s", message["To"], e)
            raise MailDeliveryError(str(e)) from e
        except OSError as e:
            logger.error("SMTP connection to %s failed: %s", settings.SMTP_HOST, e)
            raise MailDeliveryError(str(e)) from e

    async def send_subscription_confirmation(self, email: str) -> None:
        await self.send(build_subscription_message(email))
        logger.info("Subscription confirmation sent to %s", email)


mail_service = MailService()
