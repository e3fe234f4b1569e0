"""
Configuration Management for Fiado Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger's business constants (zero tolerance, overdue window) are
settings, not literals buried in the calculator, so their values can be
audited and changed in one place.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Business rules of the ledger engine."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    zero_tolerance: Decimal = Field(
        default=Decimal("0.10"),
        ge=0,
        description="Balances whose magnitude is below this are treated as zero"
    )
    overdue_after_days: int = Field(
        default=60,
        ge=1,
        description="Days since last relevant activity before a debt is overdue"
    )
    allow_negative_values: bool = Field(
        default=True,
        description="Accept transactions with a negative value"
    )


class GeminiSettings(BaseSettings):
    """Gemini configuration for the ledger page scanner."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Optional: the scanner reports a missing key instead of failing at startup
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=4096,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
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

    # One worksheet per collection
    customers_sheet_name: str = Field(default="customers")
    users_sheet_name: str = Field(default="users")
    expenses_sheet_name: str = Field(default="expenses")

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

    def sheet_name_for(self, collection: str) -> str:
        """Map a collection name to its worksheet title."""
        return {
            "customers": self.customers_sheet_name,
            "users": self.users_sheet_name,
            "expenses": self.expenses_sheet_name,
        }.get(collection, collection)


class BackupSettings(BaseSettings):
    """Backup document settings."""

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    format_version: str = Field(
        default="2.5",
        description="Version tag written into exported documents"
    )
    include_user_secrets: bool = Field(
        default=False,
        description="Write user passwords into exported documents"
    )


class AdminSettings(BaseSettings):
    """Seed administrator account, created or refreshed at startup."""

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    username: Optional[str] = None
    password: Optional[str] = None
    name: str = Field(default="Administrator")
    email: Optional[str] = None
    whatsapp: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)


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
        description="Root log level"
    )
    storage_backend: str = Field(
        default="google_sheets",
        pattern="^(google_sheets|memory)$",
        description="Which document store to use"
    )


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

    # Loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def backup(self) -> BackupSettings:
        return BackupSettings()

    @property
    def admin(self) -> AdminSettings:
        return AdminSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "gemini", "google_sheets", "backup", "admin", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    # The scanner can run without a key, but it is worth flagging
    if results.get("gemini") and not settings.gemini.api_key:
        results["gemini"] = False
        results["gemini_error"] = "GEMINI_API_KEY is not set"

    return results
