"""
Main Orchestrator for Pocket Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Dashboard activation (materialize → aggregate → evaluate budget)
2. Export (materialize → write CSV)

DESIGN DECISION: The orchestrator enforces the ordering:
- Recurring payments are materialized before anything is read
- Each view activation runs exactly one materialization pass and
  one aggregation/evaluation pass
- Exports only ever see post-materialization expenses

Components are constructed explicitly and passed in; there is no
global store.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from pocketledger.audit import AuditLogger
from pocketledger.budget import BudgetEvaluator
from pocketledger.config import get_settings
from pocketledger.export import export_expenses_csv
from pocketledger.models.entities import ZERO, Expense, ExpenseCategory
from pocketledger.models.reports import (
    AggregateResult,
    BudgetWarning,
    CategoryStat,
    MonthlySpend,
    SortOrder,
    TimePeriod,
)
from pocketledger.queries import Aggregator
from pocketledger.recurring import RecurringMaterializer
from pocketledger.savings import SavingsLedger
from pocketledger.services.notifications import (
    LoggingNotificationSender,
    NotificationDispatcher,
    NotificationSenderInterface,
)
from pocketledger.services.storage import (
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    PersistenceError,
    SnapshotStorageInterface,
)
from pocketledger.store import LedgerStore


class DashboardState(BaseModel):
    """Everything a dashboard view renders after one activation."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime
    period: TimePeriod
    sort_order: SortOrder
    category: Optional[ExpenseCategory] = None
    materialized: list[Expense] = Field(default_factory=list)
    expenses: AggregateResult
    category_stats: list[CategoryStat] = Field(default_factory=list)
    month_to_date: MonthlySpend
    warnings: list[BudgetWarning] = Field(default_factory=list)
    monthly_progress: float = 0.0
    remaining_budget: Decimal = ZERO
    balance: Decimal = ZERO
    total_savings: Decimal = ZERO
    persistence_error: Optional[str] = None


def _materialize(
    materializer: RecurringMaterializer,
    audit_logger: AuditLogger,
) -> tuple[list[Expense], Optional[str]]:
    """
    Run one materialization pass.

    A persistence failure is reported, not raised: the new expenses are
    already in memory and the store writes them on its next persist.
    """
    try:
        return materializer.run(), None
    except PersistenceError as e:
        audit_logger.log_error("materialization_not_persisted", str(e))
        return [], str(e)


class LedgerDashboardFlow:
    """
    Orchestrates a dashboard view activation.

    Flow:
    1. Materialize → due recurring payments become expenses (once)
    2. Aggregate → filter/sort expenses, category stats, balance
    3. Evaluate → month-to-date spend against the budget
    """

    def __init__(
        self,
        store: LedgerStore,
        materializer: RecurringMaterializer,
        aggregator: Optional[Aggregator] = None,
        evaluator: Optional[BudgetEvaluator] = None,
        savings: Optional[SavingsLedger] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._materializer = materializer
        self._aggregator = aggregator or Aggregator(clock)
        self._evaluator = evaluator or BudgetEvaluator()
        self._savings = savings or SavingsLedger(store)
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    def activate(
        self,
        period: TimePeriod = TimePeriod.MONTH,
        sort_order: SortOrder = SortOrder.DATE_DESCENDING,
        category: Optional[ExpenseCategory] = None,
    ) -> DashboardState:
        """
        Refresh everything a dashboard shows.

        Returns:
            DashboardState computed from the post-materialization snapshot
        """
        now = self._clock()
        materialized, persistence_error = _materialize(self._materializer, self._audit_logger)

        snapshot = self._store.snapshot
        expenses = self._aggregator.aggregate(
            snapshot.expenses,
            category=category,
            period=period,
            sort_order=sort_order,
            now=now,
        )
        stats = self._aggregator.category_stats(
            self._aggregator.filter_by_period(snapshot.expenses, period, now)
        )

        spend = self._aggregator.month_to_date(snapshot.expenses, now)
        warnings = self._evaluator.evaluate(spend, snapshot.budget)

        return DashboardState(
            generated_at=now,
            period=period,
            sort_order=sort_order,
            category=category,
            materialized=materialized,
            expenses=expenses,
            category_stats=stats,
            month_to_date=spend,
            warnings=warnings,
            monthly_progress=BudgetEvaluator.monthly_progress(spend, snapshot.budget),
            remaining_budget=BudgetEvaluator.remaining(spend, snapshot.budget),
            balance=self._aggregator.balance(snapshot.incomes, snapshot.expenses),
            total_savings=self._savings.total_savings(),
            persistence_error=persistence_error,
        )


class ExportFlow:
    """
    Orchestrates a CSV export.

    The export always reflects materialized recurring payments.
    """

    def __init__(
        self,
        store: LedgerStore,
        materializer: RecurringMaterializer,
        audit_logger: Optional[AuditLogger] = None,
        directory: Optional[Path] = None,
    ):
        self._store = store
        self._materializer = materializer
        self._audit_logger = audit_logger or AuditLogger()
        self._directory = directory

    def export_expenses(
        self,
        directory: Optional[Path] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Materialize, then write the expense CSV.

        Raises:
            ExportError: If the file can't be written
        """
        _materialize(self._materializer, self._audit_logger)
        return export_expenses_csv(
            self._store.expenses,
            directory=directory or self._directory,
            now=now,
        )


class AppComponents(NamedTuple):
    store: LedgerStore
    dispatcher: NotificationDispatcher
    materializer: RecurringMaterializer
    aggregator: Aggregator
    evaluator: BudgetEvaluator
    savings: SavingsLedger
    dashboard: LedgerDashboardFlow
    export: ExportFlow
    audit_logger: AuditLogger


def create_storage(
    backend: Optional[str] = None,
    data_dir: Optional[Union[str, Path]] = None,
) -> SnapshotStorageInterface:
    """Build the configured snapshot backend."""
    settings = get_settings().storage
    backend = backend or settings.backend
    if backend == "memory":
        return InMemorySnapshotStorage()
    if backend == "file":
        return JsonFileSnapshotStorage(Path(data_dir).expanduser() if data_dir else settings.data_path)
    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    storage: Optional[SnapshotStorageInterface] = None,
    sender: Optional[NotificationSenderInterface] = None,
    load: bool = True,
    clock: Callable[[], datetime] = datetime.now,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Snapshot backend. Defaults to the configured one.
        sender: Notification sender. Defaults to logging only.
        load: Load the persisted snapshot before returning.
        clock: Source of "now" for every component.

    Returns:
        AppComponents sharing one store and one audit logger
    """
    audit_logger = AuditLogger()
    store = LedgerStore(storage or create_storage(), audit_logger=audit_logger)
    if load:
        store.load()

    dispatcher = NotificationDispatcher(
        sender or LoggingNotificationSender(),
        audit_logger=audit_logger,
    )
    materializer = RecurringMaterializer(
        store,
        dispatcher=dispatcher,
        audit_logger=audit_logger,
        clock=clock,
    )
    aggregator = Aggregator(clock)
    evaluator = BudgetEvaluator(dispatcher=dispatcher, audit_logger=audit_logger)
    savings = SavingsLedger(store, audit_logger=audit_logger, clock=clock)

    dashboard = LedgerDashboardFlow(
        store,
        materializer,
        aggregator=aggregator,
        evaluator=evaluator,
        savings=savings,
        audit_logger=audit_logger,
        clock=clock,
    )
    export = ExportFlow(store, materializer, audit_logger=audit_logger)

    return AppComponents(
        store=store,
        dispatcher=dispatcher,
        materializer=materializer,
        aggregator=aggregator,
        evaluator=evaluator,
        savings=savings,
        dashboard=dashboard,
        export=export,
        audit_logger=audit_logger,
    )
