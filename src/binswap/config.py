"""Configuration management for binswap."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from ``BINSWAP_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BINSWAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="auto",
        description="\"json\", \"console\", or \"auto\" (console in development, else json)",
    )

    # GitHub
    github_api_url: str = Field(
        default="https://api.github.com", description="Base URL of the GitHub REST API"
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for each outbound HTTP request"
    )
    min_request_interval_ms: int = Field(
        default=5, ge=0, description="Minimum spacing between outbound HTTP requests"
    )

    # Health check
    health_check_timeout_seconds: float = Field(
        default=60.0, gt=0, description="How long a candidate binary may run its check command"
    )

    # Filesystem
    scratch_dir: str | None = Field(
        default=None,
        description="Directory for staging and backups; defaults to the target's directory",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
