"""
Entity Store

DESIGN DECISION: The store owns one in-memory snapshot and writes it
through on every mutation.
- load() once at startup; the in-memory copy is authoritative afterwards
- every mutation validates, swaps in a new snapshot, then persists it
- if persisting fails the error is raised, the new snapshot is kept,
  and the next mutation (or flush()) writes it again

Mutations are serialized behind a re-entrant lock, so a single store
instance can be shared between threads. Readers get the frozen snapshot
and never need the lock.
"""

import threading
from typing import Callable, Optional
from uuid import UUID

from pocketledger.audit import AuditLogger
from pocketledger.config import get_settings
from pocketledger.models.audit import AuditEvent, AuditEventBuilder
from pocketledger.models.entities import (
    Budget,
    CustomCategory,
    Expense,
    Income,
    RecurringPayment,
    SavingsGoal,
    SavingsTransaction,
)
from pocketledger.models.snapshot import AppData, SnapshotCollection
from pocketledger.services.storage import (
    PersistenceError,
    SnapshotStorageInterface,
    decode_snapshot,
    encode_snapshot,
)
from pocketledger.store import transforms
from pocketledger.validation import (
    EntityValidationError,
    EntityValidator,
    ValidationIssue,
)


_CUSTOM_CATEGORY_COLLECTIONS = {
    "expense": SnapshotCollection.CUSTOM_EXPENSE_CATEGORIES,
    "income": SnapshotCollection.CUSTOM_INCOME_CATEGORIES,
}


class LedgerStore:
    """
    Write-through store for the ledger snapshot.

    Construct one per process and pass it to every component that needs it.
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        key: Optional[str] = None,
        validator: Optional[EntityValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._key = key or get_settings().storage.snapshot_key
        self._validator = validator or EntityValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._lock = threading.RLock()
        self._snapshot = AppData()
        self._dirty = False

    # =========================================================================
    # Snapshot lifecycle
    # =========================================================================

    @property
    def snapshot(self) -> AppData:
        """The current snapshot. Frozen; safe to read without locking."""
        return self._snapshot

    @property
    def is_dirty(self) -> bool:
        """True when the in-memory snapshot has changes that failed to persist."""
        return self._dirty

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> AppData:
        """
        Load the persisted snapshot into memory.

        Returns an empty snapshot if nothing is stored or it can't be decoded.

        Raises:
            StorageError: If the backend itself can't be read
        """
        with self._lock:
            document = self._storage.read(self._key)
            result = decode_snapshot(document)

            if result.reset_reason:
                self._audit_logger.log(AuditEventBuilder.snapshot_reset(result.reset_reason))
            for skipped in result.skipped:
                self._audit_logger.log(
                    AuditEventBuilder.record_skipped(skipped.collection, skipped.index, skipped.reason)
                )
            for issue in self._validator.check_snapshot(result.snapshot).issues:
                self._audit_logger.log(
                    AuditEventBuilder.invariant_violation(issue.field, issue.message)
                )

            self._snapshot = result.snapshot
            self._dirty = False
            self._audit_logger.log(AuditEventBuilder.snapshot_loaded({
                collection.value: len(self._snapshot.records(collection))
                for collection in SnapshotCollection
            }))
            return self._snapshot

    def save(self, snapshot: Optional[AppData] = None) -> None:
        """
        Persist a snapshot (the current one by default) atomically.

        Passing a snapshot also makes it the in-memory one, whether or
        not the write succeeds.

        Raises:
            PersistenceError: If encoding or writing fails
        """
        with self._lock:
            if snapshot is not None:
                self._snapshot = snapshot
                self._dirty = True
            try:
                document = encode_snapshot(self._snapshot)
                self._storage.write(self._key, document)
            except PersistenceError as e:
                self._dirty = True
                self._audit_logger.log_persistence_failed(str(e))
                raise
            except OSError as e:
                self._dirty = True
                self._audit_logger.log_persistence_failed(str(e))
                raise PersistenceError(f"Failed to persist snapshot: {e}") from e
            self._dirty = False

    def flush(self) -> bool:
        """
        Retry persisting unsaved changes.

        Returns True if a write happened.
        """
        with self._lock:
            if not self._dirty:
                return False
            self.save()
            return True

    def mutate(
        self,
        transform: Callable[[AppData], AppData],
        *events: AuditEvent,
    ) -> AppData:
        """
        Apply a pure snapshot transform and persist the result.

        The transform runs under the store lock. If it returns the snapshot
        unchanged nothing is written, unless earlier changes are still unsaved.

        Raises:
            PersistenceError: After the new snapshot is already in memory
        """
        with self._lock:
            before = self._snapshot
            after = transform(before)
            if after is before and not self._dirty:
                return before

            self._snapshot = after
            if after is not before:
                self._dirty = True
                for event in events:
                    self._audit_logger.log(event)
            self.save()
            return after

    # =========================================================================
    # Generic record operations
    # =========================================================================

    def find(self, collection: SnapshotCollection, record_id: UUID):
        return self._snapshot.find(collection, record_id)

    def append(self, collection: SnapshotCollection, record):
        """
        Append a record.

        Raises:
            EntityValidationError: Before anything changes
            PersistenceError: After the record is in memory
        """
        with self._lock:
            if collection == SnapshotCollection.SAVINGS_TRANSACTIONS:
                raise EntityValidationError([_append_only_issue()])
            self._validator.require(
                self._validator.validate_new(collection, record, self._snapshot)
            )
            self.mutate(
                lambda s: transforms.append_record(s, collection, record),
                AuditEventBuilder.record_added(collection.value, record.id),
            )
            return record

    def update_by_id(self, collection: SnapshotCollection, record) -> bool:
        """
        Replace the record with the same id, keeping list order.

        Returns False (and changes nothing) if the id is unknown.
        """
        with self._lock:
            if collection == SnapshotCollection.SAVINGS_TRANSACTIONS:
                raise EntityValidationError([_append_only_issue()])
            if self._snapshot.find(collection, record.id) is None:
                return False
            self._validator.require(
                self._validator.validate_replacement(collection, record, self._snapshot)
            )
            self.mutate(
                lambda s: transforms.update_record(s, collection, record),
                AuditEventBuilder.record_updated(collection.value, record.id),
            )
            return True

    def delete_by_id(self, collection: SnapshotCollection, record_id: UUID) -> bool:
        """
        Delete a record by id. Unknown ids are a no-op.

        Deleting a savings goal also deletes its transactions.
        """
        with self._lock:
            if collection == SnapshotCollection.SAVINGS_TRANSACTIONS:
                raise EntityValidationError([_append_only_issue()])
            if collection == SnapshotCollection.SAVINGS_GOALS:
                return self.delete_savings_goal(record_id)
            if self._snapshot.find(collection, record_id) is None:
                return False
            self.mutate(
                lambda s: transforms.delete_record(s, collection, record_id),
                AuditEventBuilder.record_deleted(collection.value, record_id),
            )
            return True

    # =========================================================================
    # Expenses
    # =========================================================================

    @property
    def expenses(self) -> list[Expense]:
        return list(self._snapshot.expenses)

    def add_expense(self, expense: Expense) -> Expense:
        return self.append(SnapshotCollection.EXPENSES, expense)

    def update_expense(self, expense: Expense) -> bool:
        return self.update_by_id(SnapshotCollection.EXPENSES, expense)

    def delete_expense(self, expense_id: UUID) -> bool:
        return self.delete_by_id(SnapshotCollection.EXPENSES, expense_id)

    # =========================================================================
    # Incomes
    # =========================================================================

    @property
    def incomes(self) -> list[Income]:
        return list(self._snapshot.incomes)

    def add_income(self, income: Income) -> Income:
        return self.append(SnapshotCollection.INCOMES, income)

    def update_income(self, income: Income) -> bool:
        return self.update_by_id(SnapshotCollection.INCOMES, income)

    def delete_income(self, income_id: UUID) -> bool:
        return self.delete_by_id(SnapshotCollection.INCOMES, income_id)

    # =========================================================================
    # Budget
    # =========================================================================

    @property
    def budget(self) -> Optional[Budget]:
        return self._snapshot.budget

    def save_budget(self, budget: Budget) -> Budget:
        """Set the (single) budget, replacing any existing one."""
        with self._lock:
            result = self._validator.validate_budget(budget)
            for issue in result.warnings:
                self._audit_logger.log(AuditEventBuilder.invariant_violation(issue.field, issue.message))
            self.mutate(
                lambda s: s.model_copy(update={"budget": budget}),
                AuditEventBuilder.budget_saved(budget.monthly_limit, len(budget.category_limits)),
            )
            return budget

    def clear_budget(self) -> bool:
        with self._lock:
            if self._snapshot.budget is None:
                return False
            self.mutate(
                lambda s: s.model_copy(update={"budget": None}),
                AuditEventBuilder.budget_cleared(),
            )
            return True

    # =========================================================================
    # Recurring payments
    # =========================================================================

    @property
    def recurring_payments(self) -> list[RecurringPayment]:
        return list(self._snapshot.recurring_payments)

    def add_recurring_payment(self, payment: RecurringPayment) -> RecurringPayment:
        return self.append(SnapshotCollection.RECURRING_PAYMENTS, payment)

    def update_recurring_payment(self, payment: RecurringPayment) -> bool:
        return self.update_by_id(SnapshotCollection.RECURRING_PAYMENTS, payment)

    def delete_recurring_payment(self, payment_id: UUID) -> bool:
        return self.delete_by_id(SnapshotCollection.RECURRING_PAYMENTS, payment_id)

    # =========================================================================
    # Savings
    # =========================================================================

    @property
    def savings_goals(self) -> list[SavingsGoal]:
        return list(self._snapshot.savings_goals)

    @property
    def savings_transactions(self) -> list[SavingsTransaction]:
        return list(self._snapshot.savings_transactions)

    def add_savings_goal(self, goal: SavingsGoal) -> SavingsGoal:
        return self.append(SnapshotCollection.SAVINGS_GOALS, goal)

    def update_savings_goal(self, goal: SavingsGoal) -> bool:
        return self.update_by_id(SnapshotCollection.SAVINGS_GOALS, goal)

    def delete_savings_goal(self, goal_id: UUID) -> bool:
        """Delete a goal and cascade to its transactions. Unknown ids are a no-op."""
        with self._lock:
            if self._snapshot.find(SnapshotCollection.SAVINGS_GOALS, goal_id) is None:
                return False
            removed = len(self._snapshot.transactions_for(goal_id))
            self.mutate(
                lambda s: transforms.delete_goal_cascade(s, goal_id),
                AuditEventBuilder.savings_goal_deleted(goal_id, removed),
            )
            return True

    def transactions_for(self, goal_id: UUID) -> list[SavingsTransaction]:
        return self._snapshot.transactions_for(goal_id)

    # =========================================================================
    # Custom categories
    # =========================================================================

    def custom_categories(self, kind: str) -> list[CustomCategory]:
        return list(self._snapshot.records(_custom_collection(kind)))

    def add_custom_category(self, kind: str, category: CustomCategory) -> CustomCategory:
        return self.append(_custom_collection(kind), category)

    def update_custom_category(self, kind: str, category: CustomCategory) -> bool:
        return self.update_by_id(_custom_collection(kind), category)

    def delete_custom_category(self, kind: str, category_id: UUID) -> bool:
        return self.delete_by_id(_custom_collection(kind), category_id)

    # =========================================================================
    # Everything
    # =========================================================================

    def clear_all(self) -> None:
        """Replace the snapshot with an empty one."""
        with self._lock:
            self.mutate(lambda s: AppData(), AuditEventBuilder.data_cleared())


def _custom_collection(kind: str) -> SnapshotCollection:
    try:
        return _CUSTOM_CATEGORY_COLLECTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown category kind: {kind}")


def _append_only_issue() -> ValidationIssue:
    return ValidationIssue(
        field="savings_transactions",
        issue_type="append_only",
        message="Savings transactions are written only by SavingsLedger.deposit and withdraw",
        severity="error",
    )
