"""
Notification Service Abstract Base Class

Defines interface for sending WhatsApp and Email notifications to guests.
Supports both Mock (development) and Real (production) implementations.
"""

import html
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class IntegrationStatus:
    """Configuration status of one delivery channel."""
    configured: bool
    provider: str
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"configured": self.configured, "provider": self.provider}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class OrderConfirmationMessage:
    """Everything needed to tell a guest their order was received."""
    order_id: str
    restaurant_name: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str]
    table_number: Optional[str]
    items: list[dict[str, Any]] = field(default_factory=list)
    total: float = 0.0
    currency: str = "INR"
    estimated_time: Optional[int] = None

    def summary_lines(self) -> list[str]:
        lines = []
        for item in self.items:
            name = item.get("name", "")
            if item.get("variant_name"):
                name = f"{name} ({item['variant_name']})"
            lines.append(f"{item.get('quantity', 1)}x {name}")
        return lines

    def text(self) -> str:
        parts = [
            f"Hi {self.customer_name}! Your order {self.order_id} at {self.restaurant_name} has been received.",
        ]
        if self.table_number:
            parts.append(f"Table: {self.table_number}")
        parts.extend(self.summary_lines())
        parts.append(f"Total: {self.currency} {self.total:.2f}")
        if self.estimated_time:
            parts.append(f"Estimated time: {self.estimated_time} mins")
        return "\n".join(parts)


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_whatsapp(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send a WhatsApp message."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def email_status(self) -> IntegrationStatus:
        """Report whether email delivery is configured."""
        pass

    @abstractmethod
    def whatsapp_status(self) -> IntegrationStatus:
        """Report whether WhatsApp delivery is configured."""
        pass

    async def send_order_confirmation(
        self,
        confirmation: OrderConfirmationMessage,
    ) -> NotificationResult:
        """Send order confirmation via WhatsApp and, when known, email."""
        message = confirmation.text()

        whatsapp_result = await self.send_whatsapp(confirmation.customer_phone, message)

        email_result = None
        if confirmation.customer_email:
            body = "<br>".join(html.escape(line) for line in message.splitlines())
            email_result = await self.send_email(
                to_email=confirmation.customer_email,
                subject=f"Order {confirmation.order_id} - {confirmation.restaurant_name}",
                body_html=f"<h1>Order Received</h1><p>{body}</p>",
                body_text=message,
            )

        return NotificationResult(
            success=whatsapp_result.success or bool(email_result and email_result.success),
            message_id=whatsapp_result.message_id or (email_result.message_id if email_result else None),
            error_message=whatsapp_result.error_message,
            provider=self.provider_name,
        )
