"""Client configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # API - shared with the web frontend (VITE_ prefix for Vite exposure)
    api_url: str = Field(
        default="http://localhost:8000/api",
        validation_alias="VITE_API_URL",
    )
    api_timeout: float = Field(default=30.0, validation_alias="TASK_API_TIMEOUT")

    # Durable session storage
    token_store_path: Path = Field(
        default=Path("~/.task_client/session.json"),
        validation_alias="TASK_TOKEN_STORE",
    )
    token_key: str = Field(default="accessToken", validation_alias="TASK_TOKEN_KEY")

    log_level: str = Field(default="WARNING", validation_alias="LOG_LEVEL")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, value: str) -> str:
        """Require an absolute http(s) URL; trailing slashes are dropped."""
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"API URL must be an absolute http(s) URL (got '{value}').",
            )
        return value.rstrip("/")

    @field_validator("api_timeout")
    @classmethod
    def validate_api_timeout(cls, value: float) -> float:
        """Timeout must be positive."""
        if value <= 0:
            raise ValueError("API timeout must be greater than zero.")
        return value

    @field_validator("token_store_path")
    @classmethod
    def expand_token_store_path(cls, value: Path) -> Path:
        """Expand '~' so the store lands in the user's home directory."""
        return value.expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
