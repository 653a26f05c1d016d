"""Configuration package."""

from pocketledger.config.settings import (
    AppSettings,
    BudgetAlertSettings,
    DailyReminderSettings,
    NotificationSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BudgetAlertSettings",
    "DailyReminderSettings",
    "NotificationSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
