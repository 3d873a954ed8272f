"""Delivery of notifications to the external notifications service.

The transport is the only part of the notification path that performs I/O.
It posts one JSON document per notification and turns every failure into a
:class:`~quorum.core.exceptions.TransportError`; the dispatcher decides what
to do with it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import httpx

from quorum.core.exceptions import TransportError
from quorum.core.settings import settings
from quorum.schemas.notification import Notification

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400


class NotificationTransport(Protocol):
    """Anything able to hand a notification over to its recipients."""

    async def send(self, notification: Notification) -> None: ...


@dataclass(frozen=True)
class NotificationConfig:
    """Immutable configuration for notification delivery."""

    enabled: bool
    url: str | None
    timeout_seconds: float


def load_notification_config() -> NotificationConfig:
    """Build configuration object from global settings."""
    return NotificationConfig(
        enabled=bool(settings.notifications_enabled and settings.notifications_url),
        url=settings.notifications_url,
        timeout_seconds=float(settings.notifications_timeout_seconds),
    )


class HttpNotificationTransport:
    """Posts notifications as JSON to the configured endpoint."""

    def __init__(
        self,
        config: NotificationConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or load_notification_config()
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    async def send(self, notification: Notification) -> None:
        if not self.enabled:
            raise TransportError("Notification delivery is not enabled")

        client = await self._ensure_client()
        try:
            response = await client.post(
                self.config.url or "",
                json=notification.model_dump(mode="json", by_alias=True, exclude_none=True),
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Notification request failed: {exc}") from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            raise TransportError(f"Notification service responded with {response.status_code}")
        logger.debug(
            "Delivered notification %r to %d recipients",
            notification.payload.title,
            len(notification.recipients.entity_ref),
        )

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


@lru_cache
def get_notification_transport() -> HttpNotificationTransport | None:
    """Return a transport when delivery is configured, else ``None``."""
    transport = HttpNotificationTransport()
    return transport if transport.enabled else None
