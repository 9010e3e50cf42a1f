"""
Configuration Management for Javali

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    conversations_sheet_name: str = Field(
        default="Conversations",
        description="Name of the sheet for conversation records"
    )
    preferences_sheet_name: str = Field(
        default="Preferences",
        description="Name of the sheet for user preferences"
    )
    financial_context_sheet_name: str = Field(
        default="FinancialContext",
        description="Name of the sheet for financial context records"
    )
    goals_sheet_name: str = Field(
        default="Goals",
        description="Name of the sheet for goal snapshots"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini completion service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=300,
        ge=16,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient failures before giving up"
    )


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

    # Local time
    local_timezone: Optional[str] = Field(
        default=None,
        description="IANA zone for \"now\" and naive datetimes (system offset if unset)"
    )

    # Identity (established externally, e.g. from a stored device identifier)
    default_user_id: str = Field(
        default="default_user",
        description="User id used when none is supplied"
    )

    # Ledger
    top_categories_count: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many categories a period summary reports"
    )

    # Goals
    days_per_month: int = Field(
        default=30,
        ge=28,
        le=31,
        description="Month length used when spreading a goal over time"
    )

    # Memory / context
    conversation_list_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Default number of conversations returned by a listing"
    )
    context_recent_conversations: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Conversations included in an assembled context"
    )
    context_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Default context limit (financial records fetched = limit * 2)"
    )

    @field_validator('local_timezone')
    @classmethod
    def validate_local_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject zone names the tz database does not know."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
