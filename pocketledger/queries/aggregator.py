"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and read-only.
Every result is recomputed from the records it is given; nothing is
cached and nothing is written back to the store.

The same code serves expenses and incomes - both carry amount, date
and a category tag.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from pocketledger.models.entities import (
    ZERO,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
)
from pocketledger.models.reports import (
    AggregateResult,
    CategoryStat,
    MonthlySpend,
    SortOrder,
    TimePeriod,
)


DatedRecord = Union[Expense, Income]
Category = Union[ExpenseCategory, IncomeCategory]


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class Aggregator:
    """
    Filters, sorts and summarizes dated records.

    The clock is injectable so period filters can be tested
    against a fixed "now".
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def filter_by_period(
        self,
        records: Iterable[DatedRecord],
        period: TimePeriod,
        now: Optional[datetime] = None,
    ) -> list[DatedRecord]:
        """
        Keep records inside the period.

        - day: same calendar day as now
        - week: on or after now - 7 days (rolling, not a calendar week)
        - month: on or after the first instant of the current month
        - all: everything
        """
        now = now or self.now()
        records = list(records)

        if period == TimePeriod.DAY:
            today = now.date()
            return [r for r in records if r.date.date() == today]
        if period == TimePeriod.WEEK:
            cutoff = now - timedelta(days=7)
            return [r for r in records if r.date >= cutoff]
        if period == TimePeriod.MONTH:
            cutoff = start_of_month(now)
            return [r for r in records if r.date >= cutoff]
        return records

    def sort_records(
        self,
        records: Iterable[DatedRecord],
        sort_order: SortOrder,
    ) -> list[DatedRecord]:
        """Stable sort; records with equal keys keep their input order."""
        records = list(records)
        if sort_order == SortOrder.DATE_ASCENDING:
            return sorted(records, key=lambda r: r.date)
        if sort_order == SortOrder.DATE_DESCENDING:
            return sorted(records, key=lambda r: r.date, reverse=True)
        if sort_order == SortOrder.AMOUNT_ASCENDING:
            return sorted(records, key=lambda r: r.amount)
        if sort_order == SortOrder.AMOUNT_DESCENDING:
            return sorted(records, key=lambda r: r.amount, reverse=True)
        raise ValueError(f"Unknown sort order: {sort_order}")

    def aggregate(
        self,
        records: Iterable[DatedRecord],
        category: Optional[Category] = None,
        period: TimePeriod = TimePeriod.ALL,
        sort_order: SortOrder = SortOrder.DATE_DESCENDING,
        now: Optional[datetime] = None,
    ) -> AggregateResult:
        """
        Filter by category and period, sort, and total.

        Returns:
            AggregateResult with the filtered records in order and their sum
        """
        selected = self.filter_by_period(records, period, now)
        if category is not None:
            selected = [r for r in selected if r.category == category]
        selected = self.sort_records(selected, sort_order)
        return AggregateResult(records=selected, total=_total(selected))

    def category_stats(self, records: Iterable[DatedRecord]) -> list[CategoryStat]:
        """
        Per-category totals and their share of the grand total.

        Empty when the grand total is zero. Sorted by amount, largest first.
        """
        grouped = self.group_by_category(records)
        grand_total = sum((_total(items) for items in grouped.values()), ZERO)
        if grand_total == 0:
            return []

        stats = [
            CategoryStat(
                category=category,
                amount=amount,
                percentage=float(amount / grand_total),
            )
            for category, amount in (
                (category, _total(items)) for category, items in grouped.items()
            )
        ]
        return sorted(stats, key=lambda s: s.amount, reverse=True)

    def group_by_category(
        self,
        records: Iterable[DatedRecord],
    ) -> dict[Category, list[DatedRecord]]:
        """Records per category, in first-seen category order."""
        grouped: dict[Category, list[DatedRecord]] = {}
        for record in records:
            grouped.setdefault(record.category, []).append(record)
        return grouped

    def month_to_date(
        self,
        expenses: Iterable[Expense],
        now: Optional[datetime] = None,
    ) -> MonthlySpend:
        """Current-month total and per-category spend, for budget evaluation."""
        current = self.filter_by_period(expenses, TimePeriod.MONTH, now)
        by_category = {
            category: _total(items)
            for category, items in self.group_by_category(current).items()
        }
        return MonthlySpend(total=_total(current), by_category=by_category)

    def balance(
        self,
        incomes: Iterable[Income],
        expenses: Iterable[Expense],
    ) -> Decimal:
        """Total income minus total expenses. May be negative."""
        return _total(incomes) - _total(expenses)


def _total(records: Iterable[DatedRecord]) -> Decimal:
    return sum((r.amount for r in records), ZERO)
