"""
Integration event publishing.

The outbox publisher stores each event in the `integration_events` table; a
relay process forwards unpublished rows to the message bus. Writing to the
outbox keeps publishing on the same Supabase connection the sale was saved
with.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import uuid4

from postgrest.exceptions import APIError

from config import Settings
from domain.time import utc_now
from services.integration_events import IntegrationEvent

logger = logging.getLogger(__name__)

_OUTBOX_TABLE: str = "integration_events"


class EventPublishError(RuntimeError):
    """Raised when an integration event could not be stored for delivery."""


class IntegrationEventPublisher(Protocol):
    def publish(self, event: IntegrationEvent) -> None:
        ...


class OutboxEventPublisher:
    """Write integration events to the Supabase outbox table."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def publish(self, event: IntegrationEvent) -> None:
        payload = {
            "event_id": str(uuid4()),
            "event_type": event.event_type,
            "payload": event.to_payload(),
            "occurred_at_utc": utc_now().isoformat(),
        }

        try:
            response = self._client.table(_OUTBOX_TABLE).insert(payload).execute()
        except APIError as e:
            raise EventPublishError(f"Failed to publish {event.event_type}: {e.message}") from e

        error = getattr(response, "error", None)
        if error:
            raise EventPublishError(f"Failed to publish {event.event_type}: {error}")

        logger.debug("Stored %s event %s in outbox", event.event_type, payload["event_id"])


class LoggingEventPublisher:
    """Log events instead of delivering them. For local development."""

    def publish(self, event: IntegrationEvent) -> None:
        logger.info("Integration event %s: %s", event.event_type, event.to_payload())


def build_event_publisher(settings: Settings, client: Any) -> IntegrationEventPublisher:
    """Select the publisher configured by EVENT_PUBLISHER."""

    if settings.event_publisher == "outbox":
        return OutboxEventPublisher(client)
    if settings.event_publisher == "log":
        return LoggingEventPublisher()
    raise RuntimeError(
        f"Unsupported EVENT_PUBLISHER: {settings.event_publisher!r}. Use 'outbox' or 'log'."
    )


__all__ = [
    "EventPublishError",
    "IntegrationEventPublisher",
    "LoggingEventPublisher",
    "OutboxEventPublisher",
    "build_event_publisher",
]
