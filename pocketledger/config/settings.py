"""
Configuration Management for Pocket Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each concern gets its own env prefix so a deployment can override
just the alert threshold without touching storage paths.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Snapshot persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Snapshot backend: 'file' for JSON on disk, 'memory' for ephemeral"
    )
    data_dir: str = Field(
        default="~/.pocketledger",
        description="Directory holding the snapshot document"
    )
    snapshot_key: str = Field(
        default="PocketLedgerAppData",
        min_length=1,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Well-known key the snapshot document is stored under"
    )

    @property
    def data_path(self) -> Path:
        """Data directory with the user's home expanded."""
        return Path(self.data_dir).expanduser()


class BudgetAlertSettings(BaseSettings):
    """Monthly budget alert configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_ALERTS_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Master switch for the monthly budget warning"
    )
    threshold: float = Field(
        default=0.75,
        ge=0.5,
        le=1.0,
        description="Fraction of the monthly limit that triggers a warning"
    )


class DailyReminderSettings(BaseSettings):
    """Daily 'log your expenses' reminder configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DAILY_REMINDER_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=False,
        description="Schedule the daily reminder"
    )
    hour: int = Field(
        default=20,
        ge=0,
        le=23,
        description="Hour of day (local time)"
    )
    minute: int = Field(
        default=0,
        ge=0,
        le=59,
        description="Minute of hour"
    )
    text: str = Field(
        default="Don't forget to log today's expenses!",
        min_length=1,
        max_length=200,
        description="Reminder body"
    )
    recurring_days_before: int = Field(
        default=1,
        ge=0,
        le=30,
        description="How many days ahead to remind about a recurring payment"
    )


class NotificationSettings(BaseSettings):
    """Notification delivery configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        extra="ignore"
    )

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Delivery attempts per notification before giving up"
    )
    backoff_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=5.0,
        description="Base exponential backoff between delivery attempts"
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

    currency_code: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code used for display and export"
    )
    max_note_length: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum length of an expense/income note"
    )

    @field_validator('currency_code')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


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

    # Sub-settings are built on access so a bad group doesn't block the rest

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def budget_alerts(self) -> BudgetAlertSettings:
        return BudgetAlertSettings()

    @property
    def daily_reminder(self) -> DailyReminderSettings:
        return DailyReminderSettings()

    @property
    def notifications(self) -> NotificationSettings:
        return NotificationSettings()

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
    Validate all settings groups load.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries carrying the message for groups that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "budget_alerts", "daily_reminder", "notifications", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
