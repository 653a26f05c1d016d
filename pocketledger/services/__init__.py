"""Services package."""

from pocketledger.services.notifications import (
    InMemoryNotificationSender,
    LoggingNotificationSender,
    NotificationBuilder,
    NotificationDispatcher,
    NotificationError,
    NotificationSenderInterface,
)
from pocketledger.services.storage import (
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
    decode_snapshot,
    encode_snapshot,
)

__all__ = [
    # Notification services
    "InMemoryNotificationSender",
    "LoggingNotificationSender",
    "NotificationBuilder",
    "NotificationDispatcher",
    "NotificationError",
    "NotificationSenderInterface",
    # Storage services
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "PersistenceError",
    "SnapshotStorageInterface",
    "StorageError",
    "decode_snapshot",
    "encode_snapshot",
]
