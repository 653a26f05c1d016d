"""
Derived (non-persisted) models: aggregation results and budget warnings.

None of these are ever written to the snapshot. They are recomputed
from scratch every time a view asks for them.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from pocketledger.models.entities import (
    ZERO,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
)


class TimePeriod(str, Enum):
    """Period filter for lists and statistics."""
    DAY = "day"      # same calendar day as now
    WEEK = "week"    # rolling 7 days, not a calendar week
    MONTH = "month"  # since the first instant of the current month
    ALL = "all"


class SortOrder(str, Enum):
    DATE_DESCENDING = "date_desc"
    DATE_ASCENDING = "date_asc"
    AMOUNT_DESCENDING = "amount_desc"
    AMOUNT_ASCENDING = "amount_asc"


class AggregateResult(BaseModel):
    """Filtered, sorted records and their total."""
    model_config = ConfigDict(frozen=True)

    records: list[Union[Expense, Income]] = Field(default_factory=list)
    total: Decimal = ZERO

    @property
    def count(self) -> int:
        return len(self.records)


class CategoryStat(BaseModel):
    """One category's share of a filtered total."""
    model_config = ConfigDict(frozen=True)

    category: Union[ExpenseCategory, IncomeCategory]
    amount: Decimal
    percentage: float = Field(ge=0.0, le=1.0)

    @property
    def display_name(self) -> str:
        return self.category.display_name

    @property
    def color_hex(self) -> str:
        return self.category.info.color_hex


class MonthlySpend(BaseModel):
    """Current-month spend, as consumed by budget evaluation."""
    model_config = ConfigDict(frozen=True)

    total: Decimal = ZERO
    by_category: dict[ExpenseCategory, Decimal] = Field(default_factory=dict)

    def for_category(self, category: ExpenseCategory) -> Decimal:
        return self.by_category.get(category, ZERO)


class BudgetWarning(BaseModel):
    """
    Advisory result of budget evaluation.

    category is None for the monthly (overall) warning.
    ratio is spent / limit and may exceed 1.0.
    """
    model_config = ConfigDict(frozen=True)

    category: Optional[ExpenseCategory] = None
    ratio: float = Field(ge=0.0)
    spent: Decimal
    limit: Decimal

    @property
    def is_monthly(self) -> bool:
        return self.category is None

    @property
    def is_over_budget(self) -> bool:
        return self.spent >= self.limit

    @property
    def percent(self) -> int:
        return int(self.ratio * 100)

    @property
    def message(self) -> str:
        if self.category is not None:
            return f"You've used {self.percent}% of your {self.category.display_name} budget"
        return f"You've used {self.percent}% of your monthly budget"
