"""Booking confirmation notifications.

Confirmations are posted as JSON to a webhook (typically a transactional
email relay). Without a configured webhook the notification is only logged.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class NotificationService:
    """Sends booking confirmation notifications."""

    # Notification types
    BOOKING_CONFIRMED = "booking_confirmed"

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize notification service."""
        self.webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self.timeout = timeout or settings.notification_timeout_seconds
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def send(self, notification_type: str, payload: dict[str, Any]) -> bool:
        """Post one notification.

        Returns:
            bool: True if delivered (or only logged because no webhook is set)
        """
        body = {
            "type": notification_type,
            "sent_at": datetime.now(UTC).isoformat(),
            **payload,
        }

        if not self.webhook_url:
            logger.info(f"Notification {notification_type} (no webhook configured): {payload}")
            return True

        try:
            response = await self.http_client.post(self.webhook_url, json=body)
        except httpx.HTTPError as e:
            logger.error(f"Notification {notification_type} delivery failed: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"Notification {notification_type} rejected with HTTP {response.status_code}")
            return False
        return True

    async def booking_confirmed(
        self,
        deposit_id: str,
        booking_ids: list[str],
        order_id: str | None = None,
        email: str | None = None,
        name: str | None = None,
    ) -> bool:
        """Confirmation for every booking a completed deposit paid for."""
        return await self.send(
            self.BOOKING_CONFIRMED,
            {
                "deposit_id": deposit_id,
                "order_id": order_id,
                "booking_ids": booking_ids,
                "email": email,
                "name": name,
            },
        )


notification_service = NotificationService()
