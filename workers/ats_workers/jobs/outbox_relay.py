"""Relay of outbox rows to the event bus.

Rows are claimed under a lease so several relays can run side by side; a
claimed row that is never marked becomes due again once the lease lapses.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Protocol

from opentelemetry import trace

from ats_api.services.events import EventPublisher
from ats_api.services.repository import OutboxEventRecord

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class OutboxStore(Protocol):
    async def claim_outbox_events(self, *, limit: int, lease_seconds: int) -> list[OutboxEventRecord]: ...

    async def mark_outbox_event_published(self, event_id: str) -> None: ...

    async def mark_outbox_event_failed(
        self,
        event_id: str,
        *,
        error: str,
        retry_delay_seconds: int,
        dead_letter: bool,
    ) -> None: ...


@dataclass(slots=True)
class RelayStats:
    claimed: int = 0
    published: int = 0
    retried: int = 0
    dead_lettered: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "claimed": self.claimed,
            "published": self.published,
            "retried": self.retried,
            "dead_lettered": self.dead_lettered,
        }


def compute_retry_delay_seconds(attempts: int, *, base_seconds: int, max_seconds: int) -> int:
    exponent = max(0, attempts - 1)
    # Cap the exponent so huge attempt counts never build giant ints.
    delay = base_seconds * (2 ** min(exponent, 32))
    return max(0, min(delay, max_seconds))


async def relay_outbox_batch(
    repository: OutboxStore,
    publisher: EventPublisher,
    *,
    batch_size: int,
    lease_seconds: int,
    max_attempts: int,
    retry_base_seconds: int,
    retry_max_seconds: int,
) -> RelayStats:
    stats = RelayStats()
    events = await repository.claim_outbox_events(limit=batch_size, lease_seconds=lease_seconds)
    stats.claimed = len(events)

    for event in events:
        with tracer.start_as_current_span("worker.relay_event") as span:
            span.set_attribute("outbox.event_id", event.id)
            span.set_attribute("outbox.event_type", event.event_type)
            try:
                await publisher.publish(
                    event.event_type,
                    event.payload,
                    event_id=event.id,
                    occurred_at=event.created_at,
                )
            except Exception as exc:
                dead_letter = event.attempts >= max_attempts
                delay = compute_retry_delay_seconds(
                    event.attempts,
                    base_seconds=retry_base_seconds,
                    max_seconds=retry_max_seconds,
                )
                await repository.mark_outbox_event_failed(
                    event.id,
                    error=str(exc),
                    retry_delay_seconds=delay,
                    dead_letter=dead_letter,
                )
                if dead_letter:
                    stats.dead_lettered += 1
                    logger.error(
                        "outbox event dead-lettered id=%s type=%s attempts=%s error=%s",
                        event.id,
                        event.event_type,
                        event.attempts,
                        exc,
                    )
                else:
                    stats.retried += 1
                    logger.warning(
                        "outbox publish failed id=%s type=%s attempts=%s retry_in=%ss error=%s",
                        event.id,
                        event.event_type,
                        event.attempts,
                        delay,
                        exc,
                    )
                continue

            await repository.mark_outbox_event_published(event.id)
            stats.published += 1

    return stats
