"""
Core Ledger Entities for Pocket Ledger

These models define the strict schemas for every persisted record.
They are designed to:
1. Enforce amount/field rules at construction time
2. Be immutable - a change is a new instance replacing the old by id
3. Serialize to the persisted document shape (camelCase keys)
4. Keep money at 2-decimal precision

DESIGN DECISION: Money is Decimal, quantized to cents on validation.
Ratios and percentages derived from money are plain floats.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, NamedTuple, Optional, Union
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Round a Decimal to cents (half-up)."""
    if not value.is_finite():
        raise ValueError("Amount must be a finite number")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _positive_money(value: Decimal) -> Decimal:
    value = quantize_money(value)
    if value <= 0:
        raise ValueError("Amount must be greater than zero")
    return value


def _non_negative_money(value: Decimal) -> Decimal:
    value = quantize_money(value)
    if value < 0:
        raise ValueError("Amount cannot be negative")
    return value


PositiveMoney = Annotated[Decimal, AfterValidator(_positive_money)]
NonNegativeMoney = Annotated[Decimal, AfterValidator(_non_negative_money)]


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# Stored and compared as naive local time
LocalDateTime = Annotated[datetime, AfterValidator(_local_naive)]


class ScheduleOverflowError(ValueError):
    """The next occurrence of a schedule falls outside the representable calendar."""
    pass


# =============================================================================
# CATEGORIES - enum tags plus a data-driven lookup table
# =============================================================================

class ExpenseCategory(str, Enum):
    """Built-in expense categories."""
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTH = "health"
    BILLS = "bills"
    EDUCATION = "education"
    TRAVEL = "travel"
    OTHER = "other"

    @property
    def info(self) -> "CategoryInfo":
        return EXPENSE_CATEGORY_TABLE[self]

    @property
    def display_name(self) -> str:
        return self.info.display_name


class IncomeCategory(str, Enum):
    """Built-in income categories."""
    SALARY = "salary"
    FREELANCE = "freelance"
    GIFT = "gift"
    OTHER = "other"

    @property
    def info(self) -> "CategoryInfo":
        return INCOME_CATEGORY_TABLE[self]

    @property
    def display_name(self) -> str:
        return self.info.display_name


class CategoryInfo(NamedTuple):
    """Display metadata for one category tag."""
    tag: str
    display_name: str
    icon: str
    color_hex: str


def _build_table(enum_cls, rows):
    table = {}
    for tag, display_name, icon, color_hex in rows:
        table[enum_cls(tag)] = CategoryInfo(tag, display_name, icon, color_hex)
    missing = set(enum_cls) - set(table)
    if missing:
        raise RuntimeError(f"Category table incomplete for {enum_cls.__name__}: {missing}")
    return table


EXPENSE_CATEGORY_TABLE: dict[ExpenseCategory, CategoryInfo] = _build_table(
    ExpenseCategory,
    [
        ("food", "Food", "fork.knife", "#FF6B6B"),
        ("transport", "Transport", "car.fill", "#4ECDC4"),
        ("entertainment", "Entertainment", "tv.fill", "#95E1D3"),
        ("shopping", "Shopping", "bag.fill", "#F38181"),
        ("health", "Health", "heart.fill", "#AA96DA"),
        ("bills", "Bills", "doc.text.fill", "#A8E6CF"),
        ("education", "Education", "graduationcap.fill", "#87CEEB"),
        ("travel", "Travel", "airplane", "#FFB347"),
        ("other", "Other", "ellipsis.circle.fill", "#FCBAD3"),
    ],
)

INCOME_CATEGORY_TABLE: dict[IncomeCategory, CategoryInfo] = _build_table(
    IncomeCategory,
    [
        ("salary", "Salary", "briefcase.fill", "#4ECDC4"),
        ("freelance", "Freelance", "laptopcomputer", "#95E1D3"),
        ("gift", "Gift", "gift.fill", "#F38181"),
        ("other", "Other", "ellipsis.circle.fill", "#FCBAD3"),
    ],
)


class PaymentFrequency(str, Enum):
    """How often a recurring payment comes due."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    def next_date(self, value: datetime) -> datetime:
        """
        Advance by exactly one unit of this frequency.

        Month and year steps clamp to the last valid day
        (Jan 31 + 1 month -> Feb 29 in a leap year).

        Raises:
            ScheduleOverflowError: If the result is not a representable date
        """
        try:
            return value + _FREQUENCY_STEPS[self]
        except (OverflowError, ValueError) as e:
            raise ScheduleOverflowError(
                f"Cannot advance {value.isoformat()} by one {self.value} step: {e}"
            ) from e


_FREQUENCY_STEPS = {
    PaymentFrequency.DAILY: relativedelta(days=1),
    PaymentFrequency.WEEKLY: relativedelta(weeks=1),
    PaymentFrequency.MONTHLY: relativedelta(months=1),
    PaymentFrequency.YEARLY: relativedelta(years=1),
}


# =============================================================================
# BASE MODEL
# =============================================================================

class LedgerModel(BaseModel):
    """
    Base for all persisted records.

    Python attributes are snake_case; the persisted document uses camelCase.
    Records are frozen - use model_copy(update=...) to derive a new version.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def _empty_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# =============================================================================
# EXPENSES & INCOMES
# =============================================================================

class _DatedAmount(LedgerModel):
    id: UUID = Field(default_factory=uuid4)
    amount: PositiveMoney
    date: LocalDateTime
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator('note', mode='before')
    @classmethod
    def blank_note_is_none(cls, v):
        return _empty_to_none(v) if isinstance(v, str) else v


class Expense(_DatedAmount):
    """A single spend. Replaced wholesale by id when edited."""
    category: ExpenseCategory


class Income(_DatedAmount):
    """A single inflow. Mirrors Expense."""
    category: IncomeCategory


# =============================================================================
# BUDGET
# =============================================================================

DEFAULT_NOTIFICATION_THRESHOLDS = [0.5, 0.75, 0.9, 1.0]


class Budget(LedgerModel):
    """
    Spending limits. At most one exists per snapshot.

    A limit of 0 is kept as-is but treated as "unconfigured" by evaluation.
    """
    monthly_limit: Optional[NonNegativeMoney] = None
    category_limits: dict[ExpenseCategory, NonNegativeMoney] = Field(default_factory=dict)
    notification_thresholds: list[Annotated[float, Field(ge=0.0, le=2.0)]] = Field(
        default_factory=lambda: list(DEFAULT_NOTIFICATION_THRESHOLDS)
    )

    @field_validator('notification_thresholds')
    @classmethod
    def sort_thresholds(cls, v: list[float]) -> list[float]:
        return sorted(set(v))

    def limit_for(self, category: ExpenseCategory) -> Optional[Decimal]:
        return self.category_limits.get(category)

    def with_limit(self, category: ExpenseCategory, limit: Optional[Decimal]) -> "Budget":
        """Return a copy with the category limit set, or removed when limit is None."""
        limits = dict(self.category_limits)
        if limit is None:
            limits.pop(category, None)
        else:
            limits[category] = _non_negative_money(Decimal(str(limit)))
        return self.model_copy(update={"category_limits": limits})


# =============================================================================
# RECURRING PAYMENTS
# =============================================================================

class RecurringPayment(LedgerModel):
    """
    A scheduled obligation that turns into an Expense when it comes due.

    next_occurrence only ever moves forward, one frequency step per
    materialization.
    """
    id: UUID = Field(default_factory=uuid4)
    amount: PositiveMoney
    category: ExpenseCategory
    name: str = Field(..., min_length=1, max_length=100)
    start_date: LocalDateTime
    frequency: PaymentFrequency
    next_occurrence: LocalDateTime
    is_active: bool = True

    @classmethod
    def schedule(
        cls,
        amount: Decimal,
        category: ExpenseCategory,
        name: str,
        frequency: PaymentFrequency,
        start_date: Optional[datetime] = None,
        is_active: bool = True,
    ) -> "RecurringPayment":
        """Create a payment whose first occurrence is one step after start_date."""
        start_date = _local_naive(start_date or datetime.now())
        return cls(
            amount=amount,
            category=category,
            name=name,
            start_date=start_date,
            frequency=frequency,
            next_occurrence=frequency.next_date(start_date),
            is_active=is_active,
        )

    @property
    def expense_note(self) -> str:
        return f"{self.name} (Recurring)"

    def is_due(self, today: date) -> bool:
        """Active and scheduled on or before today (date-only comparison)."""
        return self.is_active and self.next_occurrence.date() <= today

    def materialize(self) -> tuple[Expense, "RecurringPayment"]:
        """
        Produce the Expense for the current occurrence and the advanced payment.

        Raises:
            ScheduleOverflowError: If the following occurrence can't be computed
        """
        expense = Expense(
            amount=self.amount,
            category=self.category,
            date=self.next_occurrence,
            note=self.expense_note,
        )
        advanced = self.model_copy(
            update={"next_occurrence": self.frequency.next_date(self.next_occurrence)}
        )
        return expense, advanced


# =============================================================================
# SAVINGS
# =============================================================================

class SavingsGoal(LedgerModel):
    """
    A savings target. current_amount is the net of the goal's transactions
    and only changes through deposit/withdraw.
    """
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: PositiveMoney
    current_amount: NonNegativeMoney = ZERO
    icon: str = Field(default="banknote.fill", min_length=1)
    color_hex: str = Field(default="#F9BF13", pattern=r"^#[0-9A-Fa-f]{6}$")
    created_at: LocalDateTime = Field(default_factory=datetime.now)
    deadline: Optional[LocalDateTime] = None

    @property
    def progress(self) -> float:
        """Fraction of the target reached, capped at 1.0."""
        if self.target_amount <= 0:
            return 0.0
        return min(float(self.current_amount / self.target_amount), 1.0)

    @property
    def remaining(self) -> Decimal:
        return max(self.target_amount - self.current_amount, ZERO)

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    def days_remaining(self, today: Optional[date] = None) -> Optional[int]:
        """Whole calendar days until the deadline, floored at 0; None without one."""
        if self.deadline is None:
            return None
        today = today or date.today()
        return max((self.deadline.date() - today).days, 0)

    def suggested_daily_amount(self, today: Optional[date] = None) -> Optional[Decimal]:
        """Amount to set aside per day to hit the target by the deadline."""
        days = self.days_remaining(today)
        if not days or days <= 0:
            return None
        return quantize_money(self.remaining / days)


class SavingsTransaction(LedgerModel):
    """One deposit or withdrawal against a goal. Append-only."""
    id: UUID = Field(default_factory=uuid4)
    goal_id: UUID
    amount: PositiveMoney
    date: LocalDateTime = Field(default_factory=datetime.now)
    note: Optional[str] = Field(default=None, max_length=500)
    is_deposit: bool = True

    @field_validator('note', mode='before')
    @classmethod
    def blank_note_is_none(cls, v):
        return _empty_to_none(v) if isinstance(v, str) else v

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_deposit else -self.amount


# =============================================================================
# CUSTOM CATEGORIES
# =============================================================================

class CustomCategory(LedgerModel):
    """A user-defined palette entry. Does not extend the category enums."""
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=50)
    icon: str = Field(..., min_length=1)
    color_hex: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator('color_hex')
    @classmethod
    def upper_hex(cls, v: str) -> str:
        return v.upper()

    def to_info(self) -> CategoryInfo:
        return CategoryInfo(str(self.id), self.name, self.icon, self.color_hex)


def category_palette(
    kind: str,
    custom: Optional[list[CustomCategory]] = None,
) -> list[CategoryInfo]:
    """
    Built-in categories for kind ("expense" or "income") followed by customs.
    """
    if kind == "expense":
        table = EXPENSE_CATEGORY_TABLE
    elif kind == "income":
        table = INCOME_CATEGORY_TABLE
    else:
        raise ValueError(f"Unknown category kind: {kind}")
    return list(table.values()) + [c.to_info() for c in custom or []]


LedgerRecord = Union[
    Expense, Income, RecurringPayment, SavingsGoal, SavingsTransaction, CustomCategory
]
