from __future__ import annotations

from opentelemetry import trace
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from ats_api.core.telemetry import (
    TelemetryRuntime,
    TelemetrySettings,
    build_tracer_provider,
    configure_logging,
    flush_provider,
)

_HTTPX_INSTRUMENTOR = HTTPXClientInstrumentor()


def configure_worker_logging() -> None:
    configure_logging()


def setup_worker_telemetry(settings: TelemetrySettings) -> TelemetryRuntime:
    if not settings.otel_enabled:
        return TelemetryRuntime(enabled=False, provider=None)

    provider = build_tracer_provider(settings)
    trace.set_tracer_provider(provider)
    # Event bus publishes go through httpx.
    _HTTPX_INSTRUMENTOR.instrument(tracer_provider=provider)
    return TelemetryRuntime(enabled=True, provider=provider)


def shutdown_worker_telemetry(runtime: TelemetryRuntime) -> None:
    if not runtime.enabled:
        return
    _HTTPX_INSTRUMENTOR.uninstrument()
    flush_provider(runtime)
