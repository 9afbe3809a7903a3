from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ats-core-api"
    environment: str = "dev"
    user_id_header: str = "x-clerk-user-id"
    platform_admin_role: str = "platform_admin"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    database_command_timeout_seconds: float = 15.0
    otel_enabled: bool = True
    otel_service_name: str = "ats-core-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="ATS_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
