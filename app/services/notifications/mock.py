"""
Mock Notification Service

Stands in for Twilio WhatsApp and SendGrid in development. Nothing
leaves the process: every message is logged and kept in an in-memory
outbox so the guest-facing text can be inspected.
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from app.services.notifications.base import (
    BaseNotificationService,
    IntegrationStatus,
    NotificationResult,
    OrderConfirmationMessage,
)

logger = logging.getLogger(__name__)

OUTBOX_LIMIT = 100


@dataclass
class OutboxEntry:
    channel: str
    to: str
    subject: Optional[str]
    body: str
    message_id: str


class MockNotificationService(BaseNotificationService):
    """
    Logs confirmations instead of sending them.

    `failure_rate` makes a share of sends fail so the worker's retry and
    logging paths can be exercised locally; `max_latency` adds a random
    delay up to that many seconds per send.
    """

    def __init__(self, failure_rate: float = 0.0, max_latency: float = 0.0):
        self.failure_rate = failure_rate
        self.max_latency = max_latency
        self.outbox: list[OutboxEntry] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _deliver(
        self,
        channel: str,
        to: str,
        body: str,
        subject: Optional[str] = None,
    ) -> NotificationResult:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(0, self.max_latency))

        if random.random() < self.failure_rate:
            logger.warning(f"Mock {channel} to {to} failed (simulated)")
            return NotificationResult(
                success=False,
                error_message=f"Simulated {channel} failure",
                provider=self.provider_name,
            )

        prefix = "wa" if channel == "WhatsApp" else "email"
        message_id = f"{prefix}_mock_{uuid.uuid4().hex[:12]}"
        self.outbox.append(OutboxEntry(channel, to, subject, body, message_id))
        del self.outbox[:-OUTBOX_LIMIT]

        return NotificationResult(success=True, message_id=message_id, provider=self.provider_name)

    async def send_whatsapp(self, to_phone: str, message: str) -> NotificationResult:
        result = await self._deliver("WhatsApp", to_phone, message)
        if result.success:
            logger.info(f"Mock WhatsApp to {to_phone} ({len(message)} chars, ID: {result.message_id})")
        return result

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        result = await self._deliver("email", to_email, body_html, subject=subject)
        if result.success:
            logger.info(f"Mock email to {to_email}: {subject} (ID: {result.message_id})")
        return result

    async def send_order_confirmation(
        self,
        confirmation: OrderConfirmationMessage,
    ) -> NotificationResult:
        table = confirmation.table_number or "no table"
        logger.info(
            f"📨 Confirming {confirmation.order_id} at {confirmation.restaurant_name}, "
            f"{table}: {len(confirmation.items)} line(s), "
            f"{confirmation.currency} {confirmation.total:.2f}, "
            f"ETA {confirmation.estimated_time or '?'} min"
        )
        return await super().send_order_confirmation(confirmation)

    async def email_status(self) -> IntegrationStatus:
        return IntegrationStatus(configured=True, provider=self.provider_name)

    def whatsapp_status(self) -> IntegrationStatus:
        return IntegrationStatus(configured=True, provider=self.provider_name)
