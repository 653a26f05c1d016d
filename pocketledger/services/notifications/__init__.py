"""Notification services package."""

from pocketledger.services.notifications.interface import (
    NotificationError,
    NotificationSenderInterface,
)
from pocketledger.services.notifications.senders import (
    InMemoryNotificationSender,
    LoggingNotificationSender,
)
from pocketledger.services.notifications.dispatcher import (
    NotificationBuilder,
    NotificationDispatcher,
    format_money,
    next_daily_reminder_at,
)

__all__ = [
    "InMemoryNotificationSender",
    "LoggingNotificationSender",
    "NotificationBuilder",
    "NotificationDispatcher",
    "NotificationError",
    "NotificationSenderInterface",
    "format_money",
    "next_daily_reminder_at",
]
