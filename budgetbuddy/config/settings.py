"""
Configuration Management for BudgetBuddy

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Budget thresholds and the reminder urgency window live here too, so the
core engines stay pure and the flows hand them the configured values.
"""

import warnings
from datetime import timedelta
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for budget limits"
    )
    reminders_sheet_name: str = Field(
        default="Reminders",
        description="Name of the sheet for reminders"
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
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Budget thresholds (percent of limit)
    near_limit_percent: Decimal = Field(
        default=Decimal("80"),
        ge=0,
        description="Progress above this is 'near_limit'"
    )
    over_limit_percent: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Progress above this is 'over_budget'"
    )

    # Reminder urgency
    urgent_window_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 30,
        description="Reminders due within this many hours are urgent"
    )
    reminder_poll_interval_seconds: int = Field(
        default=60,
        ge=5,
        description="How often alerting surfaces should re-evaluate reminders"
    )

    # Display and sanity checks
    currency_symbol: str = Field(
        default="₹",
        description="Symbol shown next to amounts"
    )
    max_transaction_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Amounts above this get a 'please verify' warning"
    )

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'AppSettings':
        if self.near_limit_percent > self.over_limit_percent:
            raise ValueError("near_limit_percent cannot exceed over_limit_percent")
        return self

    @property
    def urgent_window(self) -> timedelta:
        """Urgency window as a timedelta."""
        return timedelta(hours=self.urgent_window_hours)


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

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
