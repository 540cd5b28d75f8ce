"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from the environment or a local .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./paginas_amarelas.db"

    # Session tokens
    secret_key: str = "change-me-in-production-with-a-long-random-value"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    session_cookie_name: str = "pa_session"

    # Feed
    feed_page_size: int = 10

    # External catalogue lookup
    lookup_cache_ttl_seconds: float = 3600.0
    lookup_timeout_seconds: float = 10.0

    # Uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # OpenTelemetry
    otel_enabled: bool = False
    otel_service_name: str = "paginas-amarelas"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318/v1/traces"
    otel_exporter_otlp_protocol: str = "http/protobuf"

    @property
    def is_development(self) -> bool:
        """Whether the app runs in development mode."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
