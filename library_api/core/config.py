"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Library Catalog API"
    environment: str = "development"
    log_level: str = "INFO"

    # Storage
    storage_backend: Literal["memory", "sqlite"] = "sqlite"
    database_url: str = "sqlite+aiosqlite:///./library.db"
    database_echo: bool = False
    seed_on_startup: bool = True

    # Listing
    default_page_size: int = 20

    # CORS
    cors_allow_origins: list[str] = ["*"]

    # OpenTelemetry
    otel_enabled: bool = False
    otel_service_name: str = "library-api"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318/v1/traces"
    otel_exporter_otlp_protocol: Literal["grpc", "http/protobuf"] = "http/protobuf"

    @property
    def is_development(self) -> bool:
        """Whether the app runs in development mode."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
