from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "dev"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 4
    database_command_timeout_seconds: float = 15.0
    event_bus_url: str | None = None
    event_bus_api_key: str | None = None
    publish_timeout_seconds: float = 10.0
    poll_interval_seconds: float = 2.0
    max_backoff_seconds: float = 15.0
    outbox_batch_size: int = 50
    outbox_lease_seconds: int = 60
    outbox_max_attempts: int = 8
    outbox_retry_base_seconds: int = 5
    outbox_retry_max_seconds: int = 900
    otel_enabled: bool = True
    otel_service_name: str = "ats-core-workers"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="ATS_WORKER_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
