"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )
    billboards_table: str = Field(
        default="billboards",
        description="Table holding the owners' inventory records"
    )

    # ===================
    # BULK UPLOAD
    # ===================
    upload_default_encodings: list[str] = Field(
        default=["utf-8-sig", "windows-1252", "iso-8859-1"],
        description="Text encodings tried, in order, after the user-selected one"
    )
    upload_preview_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of valid groups transformed for the preview"
    )
    upload_grouping_key: str = Field(
        default="frame_id",
        description="Canonical field whose value ties rows to one physical unit"
    )
    digital_spots_per_day: int = Field(
        default=144,
        ge=1,
        le=10000,
        description="Sellable spots per day on a digital screen (6 per hour x 24h)"
    )
    column_match_min_length: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Minimum normalized length for substring column matches"
    )
    duplicate_match_mode: str = Field(
        default="contains",
        pattern="^(contains|exact)$",
        description="How upload identifiers are compared with existing record names"
    )
    upload_session_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Minutes an upload session is kept between requests"
    )
    max_upload_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum accepted upload size in megabytes"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
