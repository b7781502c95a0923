"""
Configuration Management for Pension Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
External services are OPTIONAL: a missing Google Sheets or Gemini
setting switches that feature off instead of failing startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: Optional[str] = Field(
        default=None,
        description="ID of the Google Sheets spreadsheet to use"
    )

    entries_sheet_name: str = Field(
        default="Lancamentos",
        description="Name of the sheet holding ledger entries"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Remote sync will fall back to the local snapshot."
            )
        return v or None

    @property
    def is_configured(self) -> bool:
        """Both the credential and the spreadsheet location must be present."""
        return bool(self.credentials_path and self.spreadsheet_id)


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=256,
        ge=32,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


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
        description="Log level for the structured logger"
    )

    # Local snapshot
    snapshot_path: str = Field(
        default="data/ledger_snapshot.json",
        description="File holding the local ledger snapshot"
    )
    storage_key: str = Field(
        default="controle_inss_data",
        description="Fixed application key the snapshot is stored under"
    )

    # Display
    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol shown next to amounts"
    )

    # Validation thresholds
    max_entry_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amount above which an entry is flagged as suspicious"
    )
    future_date_tolerance_days: int = Field(
        default=365,
        ge=0,
        description="How many days in the future an entry date can be without a warning"
    )

    # Advice
    advice_recent_entries: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many recent entries are sent to the AI for advice"
    )

    @field_validator('log_level')
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.strip().upper()


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

    # Sub-settings are built lazily to allow partial configuration

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
    Check which services are configured.

    Returns a dict of {setting_name: is_configured}, with a
    `<name>_error` entry describing what is missing or invalid.
    Useful for the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        sheets = settings.google_sheets
        results["google_sheets"] = sheets.is_configured
        if not sheets.is_configured:
            results["google_sheets_error"] = (
                "Set GOOGLE_SHEETS_CREDENTIALS_PATH and GOOGLE_SHEETS_SPREADSHEET_ID "
                "to enable cloud sync"
            )
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        gemini = settings.gemini
        results["gemini"] = gemini.is_configured
        if not gemini.is_configured:
            results["gemini_error"] = "Set GEMINI_API_KEY to enable AI insights"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
