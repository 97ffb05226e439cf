"""
Real Notification Service

Production implementation using:
- Twilio WhatsApp for guest messages
- SendGrid for Email
"""

import logging
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioException

from app.services.notifications.base import (
    BaseNotificationService,
    IntegrationStatus,
    NotificationResult,
)
from app.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def whatsapp_address(phone: str) -> str:
    """Twilio addresses WhatsApp recipients as "whatsapp:+<E.164>"."""
    phone = phone.strip()
    if phone.startswith("whatsapp:"):
        return phone
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"whatsapp:+{digits}"


class RealNotificationService(BaseNotificationService):
    """Production notification service using Twilio WhatsApp and SendGrid."""

    def __init__(self):
        # Initialize Twilio
        if settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_whatsapp_number:
            self.twilio_client = TwilioClient(
                settings.twilio_account_sid,
                settings.twilio_auth_token
            )
            self.whatsapp_from = whatsapp_address(settings.twilio_whatsapp_number)
        else:
            self.twilio_client = None
            logger.warning("Twilio WhatsApp credentials not configured")

        # Initialize SendGrid
        if settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
            self.sendgrid_from_email = settings.sendgrid_from_email
        else:
            self.sendgrid_client = None
            logger.warning("SendGrid credentials not configured")

        logger.info("RealNotificationService initialized")

    @property
    def provider_name(self) -> str:
        return "real"

    async def send_whatsapp(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send WhatsApp message via Twilio."""
        if not self.twilio_client:
            return NotificationResult(
                success=False,
                error_message="Twilio WhatsApp not configured",
                provider="twilio"
            )

        try:
            result = self.twilio_client.messages.create(
                body=message,
                from_=self.whatsapp_from,
                to=whatsapp_address(to_phone)
            )

            logger.info(f"WhatsApp sent to {to_phone}: {result.sid}")

            return NotificationResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.sendgrid_client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        try:
            message = Mail(
                from_email=self.sendgrid_from_email,
                to_emails=to_email,
                subject=subject,
                html_content=body_html,
                plain_text_content=body_text
            )

            response = self.sendgrid_client.send(message)

            logger.info(f"Email sent to {to_email}: {response.status_code}")

            return NotificationResult(
                success=response.status_code in [200, 201, 202],
                message_id=response.headers.get("X-Message-Id"),
                provider="sendgrid"
            )

        except HTTPError as e:
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
            )

    async def email_status(self) -> IntegrationStatus:
        """Check the SendGrid key by listing its scopes."""
        if not self.sendgrid_client:
            return IntegrationStatus(
                configured=False,
                provider="sendgrid",
                error="SENDGRID_API_KEY not set",
            )
        try:
            response = self.sendgrid_client.client.scopes.get()
            ok = 200 <= response.status_code < 300
            return IntegrationStatus(
                configured=ok,
                provider="sendgrid",
                error=None if ok else f"SendGrid returned {response.status_code}",
            )
        except HTTPError as e:
            logger.error(f"SendGrid verification failed: {e}")
            return IntegrationStatus(configured=False, provider="sendgrid", error=str(e))

    def whatsapp_status(self) -> IntegrationStatus:
        if self.twilio_client:
            return IntegrationStatus(configured=True, provider="twilio")
        return IntegrationStatus(
            configured=False,
            provider="twilio",
            error="TWILIO_ACCOUNT_SID/TWILIO_AUTH_TOKEN/TWILIO_WHATSAPP_NUMBER not set",
        )
