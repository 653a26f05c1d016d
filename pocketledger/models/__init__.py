"""
Data Models Package

This package contains all Pydantic models used in Pocket Ledger.
Persisted records live in entities/snapshot; derived results in reports.
"""

from pocketledger.models.entities import (
    CENTS,
    EXPENSE_CATEGORY_TABLE,
    INCOME_CATEGORY_TABLE,
    ZERO,
    Budget,
    CategoryInfo,
    CustomCategory,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    PaymentFrequency,
    RecurringPayment,
    SavingsGoal,
    SavingsTransaction,
    ScheduleOverflowError,
    category_palette,
    quantize_money,
)
from pocketledger.models.snapshot import (
    COLLECTION_TYPES,
    AppData,
    SnapshotCollection,
)
from pocketledger.models.reports import (
    AggregateResult,
    BudgetWarning,
    CategoryStat,
    MonthlySpend,
    SortOrder,
    TimePeriod,
)
from pocketledger.models.notification import (
    NotificationKind,
    NotificationRequest,
)
from pocketledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "CENTS",
    "EXPENSE_CATEGORY_TABLE",
    "INCOME_CATEGORY_TABLE",
    "ZERO",
    "Budget",
    "CategoryInfo",
    "CustomCategory",
    "Expense",
    "ExpenseCategory",
    "Income",
    "IncomeCategory",
    "PaymentFrequency",
    "RecurringPayment",
    "SavingsGoal",
    "SavingsTransaction",
    "ScheduleOverflowError",
    "category_palette",
    "quantize_money",
    # Snapshot
    "COLLECTION_TYPES",
    "AppData",
    "SnapshotCollection",
    # Reports
    "AggregateResult",
    "BudgetWarning",
    "CategoryStat",
    "MonthlySpend",
    "SortOrder",
    "TimePeriod",
    # Notifications
    "NotificationKind",
    "NotificationRequest",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
