"""
The snapshot: every persisted entity at one point in time.

The snapshot is a single document stored under one well-known key.
It is frozen; store mutations derive a new snapshot and swap it in.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import Field

from pocketledger.models.entities import (
    Budget,
    CustomCategory,
    Expense,
    Income,
    LedgerModel,
    LedgerRecord,
    RecurringPayment,
    SavingsGoal,
    SavingsTransaction,
)


class SnapshotCollection(str, Enum):
    """The id-keyed record lists in a snapshot (attribute names)."""
    EXPENSES = "expenses"
    INCOMES = "incomes"
    RECURRING_PAYMENTS = "recurring_payments"
    SAVINGS_GOALS = "savings_goals"
    SAVINGS_TRANSACTIONS = "savings_transactions"
    CUSTOM_EXPENSE_CATEGORIES = "custom_expense_categories"
    CUSTOM_INCOME_CATEGORIES = "custom_income_categories"


COLLECTION_TYPES = {
    SnapshotCollection.EXPENSES: Expense,
    SnapshotCollection.INCOMES: Income,
    SnapshotCollection.RECURRING_PAYMENTS: RecurringPayment,
    SnapshotCollection.SAVINGS_GOALS: SavingsGoal,
    SnapshotCollection.SAVINGS_TRANSACTIONS: SavingsTransaction,
    SnapshotCollection.CUSTOM_EXPENSE_CATEGORIES: CustomCategory,
    SnapshotCollection.CUSTOM_INCOME_CATEGORIES: CustomCategory,
}


class AppData(LedgerModel):
    """The full persisted state."""
    expenses: list[Expense] = Field(default_factory=list)
    incomes: list[Income] = Field(default_factory=list)
    budget: Optional[Budget] = None
    recurring_payments: list[RecurringPayment] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    savings_transactions: list[SavingsTransaction] = Field(default_factory=list)
    custom_expense_categories: list[CustomCategory] = Field(default_factory=list)
    custom_income_categories: list[CustomCategory] = Field(default_factory=list)

    def records(self, collection: SnapshotCollection) -> list[LedgerRecord]:
        return getattr(self, collection.value)

    def find(self, collection: SnapshotCollection, record_id: UUID) -> Optional[LedgerRecord]:
        for record in self.records(collection):
            if record.id == record_id:
                return record
        return None

    def transactions_for(self, goal_id: UUID) -> list[SavingsTransaction]:
        return [t for t in self.savings_transactions if t.goal_id == goal_id]

    @property
    def is_empty(self) -> bool:
        return self.budget is None and not any(
            self.records(collection) for collection in SnapshotCollection
        )
