"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "siades"
    postgres_password: str = "siades_dev_password"
    postgres_db: str = "siades"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    sqlite_busy_timeout_seconds: float = 30.0

    # API
    api_port: int = 8000
    api_host: str = "0.0.0.0"
    environment: str = "development"

    # Actor forwarded by the upstream authentication gate
    actor_header: str = "x-actor-id"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Workflow
    transition_timeout_ms: int = 5000  # Upper bound for one transition's transaction

    # Signature artifacts
    signature_image_base: str = "/signatures"
    qr_code_base: str = "/qrcodes"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if not self.database_url and self.postgres_password == "siades_dev_password":
                raise ValueError(
                    "POSTGRES_PASSWORD must be changed outside development. "
                    "Do not use default credentials."
                )
            if self.database_url_computed.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not supported outside development and test. "
                    "Set DATABASE_URL to a PostgreSQL database."
                )
            if self.transition_timeout_ms <= 0:
                raise ValueError("TRANSITION_TIMEOUT_MS must be positive.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
