"""
Configuration Management for Card Keeper

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The application cannot do anything useful without its backend, so the
two Supabase settings (project URL and public anon key) are required
and validated before any client is built.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Hosted backend (database, auth, storage) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    anon_key: str = Field(
        ...,
        description="Supabase public (anon) API key"
    )

    # Storage
    statements_bucket: str = Field(
        default="bill_statements",
        description="Storage bucket holding uploaded bill statements"
    )
    signed_url_expiry_seconds: int = Field(
        default=3600,
        ge=60,
        le=7 * 24 * 3600,
        description="Lifetime of generated statement access URLs"
    )

    @field_validator('url', 'anon_key')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """An empty URL or key is as good as a missing one."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for the structured log"
    )

    # Statement uploads
    max_statement_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum statement file size in MB"
    )
    supported_statement_types: str = Field(
        default="application/pdf",
        description="Comma-separated list of accepted statement MIME types"
    )

    # Reminder windows
    due_soon_days: int = Field(
        default=3,
        ge=1,
        description="Unpaid reminders due within this many days are 'due soon'"
    )
    upcoming_window_days: int = Field(
        default=7,
        ge=1,
        description="Window used for 'due date approaching' badges"
    )
    dashboard_reminder_limit: int = Field(
        default=3,
        ge=1,
        le=20,
        description="How many upcoming reminders the dashboard shows"
    )

    @property
    def supported_types_list(self) -> list[str]:
        """Get supported MIME types as a list."""
        return [t.strip().lower() for t in self.supported_statement_types.split(",")]

    @property
    def max_statement_size_bytes(self) -> int:
        """Get max statement size in bytes."""
        return self.max_statement_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so that the settings page can
    # report a broken section instead of crashing on import.

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.supabase
        results["supabase"] = True
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
