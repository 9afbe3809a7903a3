from __future__ import annotations

import asyncio
import logging
import random

from opentelemetry import trace

from ats_api.services.events import build_event_publisher
from ats_api.services.repository import PostgresRepository
from ats_workers.core.config import get_settings
from ats_workers.core.telemetry import (
    configure_worker_logging,
    setup_worker_telemetry,
    shutdown_worker_telemetry,
)
from ats_workers.jobs.outbox_relay import relay_outbox_batch

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def run_worker() -> None:
    settings = get_settings()
    configure_worker_logging()
    telemetry_runtime = setup_worker_telemetry(settings)
    repository = PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
    publisher = build_event_publisher(
        settings.event_bus_url,
        api_key=settings.event_bus_api_key,
        timeout_seconds=settings.publish_timeout_seconds,
    )

    backoff = settings.poll_interval_seconds

    try:
        while True:
            try:
                with tracer.start_as_current_span("worker.poll_cycle"):
                    stats = await relay_outbox_batch(
                        repository,
                        publisher,
                        batch_size=settings.outbox_batch_size,
                        lease_seconds=settings.outbox_lease_seconds,
                        max_attempts=settings.outbox_max_attempts,
                        retry_base_seconds=settings.outbox_retry_base_seconds,
                        retry_max_seconds=settings.outbox_retry_max_seconds,
                    )
                    if stats.claimed:
                        logger.info("outbox relay cycle %s", stats.as_dict())

                backoff = settings.poll_interval_seconds
                # A full batch means more rows are likely due; poll again immediately.
                if stats.claimed < settings.outbox_batch_size:
                    await asyncio.sleep(settings.poll_interval_seconds)
            except Exception as exc:  # pragma: no cover - bootstrap robustness
                jitter = random.uniform(0.0, 0.5)
                sleep_for = min(backoff * (2.0 + jitter), settings.max_backoff_seconds)
                logger.exception("worker iteration failed: %s; retry in %.1fs", exc, sleep_for)
                await asyncio.sleep(sleep_for)
                backoff = sleep_for
    finally:
        await repository.close()
        shutdown_worker_telemetry(telemetry_runtime)


if __name__ == "__main__":
    asyncio.run(run_worker())
