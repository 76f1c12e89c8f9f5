from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "talentlist-api"
    environment: str = "dev"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    database_command_timeout_seconds: float = 15.0
    store_backend: Literal["postgres", "memory"] = "postgres"
    list_default_limit: int = 10
    list_max_limit: int = 100
    related_jobs_limit: int = 20
    cursor_signing_key: str = "change-me-cursor-key"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    auth_timeout_seconds: float = 5.0
    otel_enabled: bool = True
    otel_service_name: str = "talentlist-api"
    otel_exporter_otlp_endpoint: str | None = None
    # JSON object, e.g. '{"authorization": "Bearer x"}'
    otel_exporter_otlp_headers: dict[str, str] = {}
    otel_trace_sample_ratio: float = 1.0

    model_config = SettingsConfigDict(env_prefix="TL_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
