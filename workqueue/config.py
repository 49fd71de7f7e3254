"""
Producer configuration using Pydantic Settings.
Loads configuration from WORKQUEUE_* environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from workqueue.constants import DEFAULT_TIMEOUT_MS
from workqueue.types.duration import Duration
from workqueue.types.options import Options


class Settings(BaseSettings):
    """Producer settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WORKQUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    host: str = "http://localhost:8080"
    token: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # Default delivery options, used when a publish carries none
    default_queue_type: str | None = None
    default_max_retries: int | None = None
    default_schedule_in: Duration | None = None
    default_retention: Duration | None = None
    default_unique_ttl: Duration | None = None

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    otel_service_name: str = "workqueue-producer"
    otel_exporter_otlp_endpoint: str | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def default_options(self) -> Options:
        """Build the producer's fallback Options from the default_* settings."""
        return Options(
            queue_type=self.default_queue_type,
            max_retries=self.default_max_retries,
            schedule_in=self.default_schedule_in,
            retention=self.default_retention,
            unique_ttl=self.default_unique_ttl,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
