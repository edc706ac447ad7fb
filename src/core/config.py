"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="comusic-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=65536, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Auth redirects
    auth_redirect_url: str = Field(
        default="http://localhost:5173",
        description="Redirect URL after email verification",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_signing_key_jwk: str = Field(..., description="Supabase signing key JWK (JSON string) for JWT token verification")

    # Edge functions
    track_search_function: str = Field(default="spotify-search", description="Edge function for track search")
    video_metadata_function: str = Field(default="youtube-metadata", description="Edge function for video metadata")
    delete_account_function: str = Field(default="delete-account", description="Edge function for account deletion")

    # Letters
    app_timezone: str = Field(default="UTC", description="Timezone whose calendar day bounds the daily send limit")
    default_max_daily_letters: int = Field(default=5, ge=1, description="Daily send limit when app_settings has none")
    default_max_inbox_letters: int = Field(default=10, ge=1, description="Inbox capacity when app_settings has none")
    recipient_selection_policy: Literal["least_loaded", "uniform_random"] = Field(
        default="least_loaded",
        description="How a receiver is picked among eligible candidates",
    )
    queue_sweep_interval_seconds: int = Field(
        default=300,
        ge=0,
        description="Seconds between retries of queued letters (0 disables the sweeper)",
    )
    queue_sweep_batch_size: int = Field(default=50, ge=1, description="Queued letters loaded per sweep page")

    @field_validator("app_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject timezone names the zoneinfo database does not know."""
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
