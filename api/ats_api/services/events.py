from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DomainEvent:
    """Event intent recorded in the outbox alongside the mutation that caused it."""

    event_type: str
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventPublisher(Protocol):
    async def publish(
        self,
        event_name: str,
        payload: dict[str, Any],
        *,
        event_id: str | None = None,
        occurred_at: datetime | None = None,
    ) -> None: ...


class EventPublishError(Exception):
    """Raised when the event bus rejects or cannot receive an event."""


class HttpEventPublisher:
    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
        self._transport = transport

    async def publish(
        self,
        event_name: str,
        payload: dict[str, Any],
        *,
        event_id: str | None = None,
        occurred_at: datetime | None = None,
    ) -> None:
        body = {
            "id": event_id or str(uuid4()),
            "event_type": event_name,
            "payload": payload,
            "occurred_at": (occurred_at or datetime.now(timezone.utc)).isoformat(),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/events", json=body, headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EventPublishError(f"failed to publish {event_name}: {exc}") from exc


class LoggingEventPublisher:
    """Publisher used when no event bus is configured."""

    async def publish(
        self,
        event_name: str,
        payload: dict[str, Any],
        *,
        event_id: str | None = None,
        occurred_at: datetime | None = None,
    ) -> None:
        logger.info(
            "domain event event_type=%s event_id=%s occurred_at=%s payload=%s",
            event_name,
            event_id,
            occurred_at,
            payload,
        )


def build_event_publisher(
    event_bus_url: str | None,
    *,
    api_key: str | None = None,
    timeout_seconds: float = 10.0,
) -> EventPublisher:
    if not event_bus_url:
        return LoggingEventPublisher()
    return HttpEventPublisher(event_bus_url, api_key=api_key, timeout_seconds=timeout_seconds)
