"""Shared fixtures. Everything runs against in-memory backends."""

from datetime import datetime

import pytest

from pocketledger.audit import AuditLogger
from pocketledger.config import BudgetAlertSettings, NotificationSettings
from pocketledger.services.notifications import (
    InMemoryNotificationSender,
    NotificationDispatcher,
)
from pocketledger.services.storage import InMemorySnapshotStorage
from pocketledger.store import LedgerStore


FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def store(storage, audit_logger) -> LedgerStore:
    ledger_store = LedgerStore(storage, key="TestLedger", audit_logger=audit_logger)
    ledger_store.load()
    return ledger_store


@pytest.fixture
def sender() -> InMemoryNotificationSender:
    return InMemoryNotificationSender()


@pytest.fixture
def dispatcher(sender, audit_logger) -> NotificationDispatcher:
    return NotificationDispatcher(
        sender,
        settings=NotificationSettings(max_attempts=3, backoff_seconds=0.0),
        audit_logger=audit_logger,
    )


@pytest.fixture
def alert_settings() -> BudgetAlertSettings:
    return BudgetAlertSettings(enabled=True, threshold=0.75)
