"""
Tests for Pocket Ledger models

Test strategy:
1. Unit tests for the persisted entities and their rules
2. Calendar arithmetic for recurring schedules
3. Derived report models and audit events
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from pocketledger.audit import AuditLogger
from pocketledger.models import (
    EXPENSE_CATEGORY_TABLE,
    INCOME_CATEGORY_TABLE,
    AppData,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Budget,
    BudgetWarning,
    CustomCategory,
    Expense,
    ExpenseCategory,
    IncomeCategory,
    PaymentFrequency,
    RecurringPayment,
    SavingsGoal,
    SavingsTransaction,
    ScheduleOverflowError,
    SnapshotCollection,
    category_palette,
)
from pocketledger.validation import ValidationIssue, ValidationResult


class TestExpenseModels:
    """Tests for expense and income records."""

    def test_amount_is_quantized_to_cents(self):
        """Test that amounts round half-up to two decimals."""
        expense = Expense(
            amount=Decimal("10.005"),
            category=ExpenseCategory.FOOD,
            date=datetime(2024, 3, 1),
        )
        assert expense.amount == Decimal("10.01")

    def test_zero_amount_rejected(self):
        """Test that amount must be greater than zero."""
        with pytest.raises(ValidationError):
            Expense(amount=Decimal("0"), category=ExpenseCategory.FOOD, date=datetime(2024, 3, 1))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Expense(amount=Decimal("-5"), category=ExpenseCategory.FOOD, date=datetime(2024, 3, 1))

    def test_blank_note_becomes_none(self):
        """Test that whitespace-only notes are dropped."""
        expense = Expense(
            amount=Decimal("5"),
            category=ExpenseCategory.TRANSPORT,
            date=datetime(2024, 3, 1),
            note="   ",
        )
        assert expense.note is None

    def test_records_are_frozen(self):
        expense = Expense(amount=Decimal("5"), category=ExpenseCategory.FOOD, date=datetime(2024, 3, 1))
        with pytest.raises(ValidationError):
            expense.amount = Decimal("6")

    def test_aware_dates_become_local_naive(self):
        """Test that timezone-aware input is stored as naive local time."""
        aware = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        expense = Expense(amount=Decimal("5"), category=ExpenseCategory.FOOD, date=aware)
        assert expense.date.tzinfo is None
        assert expense.date == aware.astimezone().replace(tzinfo=None)

        goal = SavingsGoal(name="Trip", target_amount=Decimal("900"), deadline="2024-06-01T00:00:00Z")
        assert goal.deadline.tzinfo is None

        payment = RecurringPayment.schedule(
            amount=Decimal("9.99"),
            category=ExpenseCategory.ENTERTAINMENT,
            name="Streaming",
            frequency=PaymentFrequency.MONTHLY,
            start_date=aware,
        )
        assert payment.start_date.tzinfo is None
        assert payment.next_occurrence.tzinfo is None

    def test_persisted_keys_are_camel_case(self):
        """Test the document shape uses camelCase field names."""
        payment = RecurringPayment.schedule(
            amount=Decimal("9.99"),
            category=ExpenseCategory.ENTERTAINMENT,
            name="Streaming",
            frequency=PaymentFrequency.MONTHLY,
            start_date=datetime(2024, 1, 1),
        )
        dumped = payment.model_dump(by_alias=True)
        assert "startDate" in dumped
        assert "nextOccurrence" in dumped
        assert "isActive" in dumped

    def test_snapshot_document_keys(self):
        dumped = AppData().model_dump(by_alias=True)
        assert set(dumped) == {
            "expenses",
            "incomes",
            "budget",
            "recurringPayments",
            "savingsGoals",
            "savingsTransactions",
            "customExpenseCategories",
            "customIncomeCategories",
        }


class TestPaymentFrequency:
    """Calendar-safe schedule arithmetic."""

    def test_monthly_clamps_to_leap_day(self):
        """Test Jan 31 + 1 month lands on Feb 29 in a leap year."""
        assert PaymentFrequency.MONTHLY.next_date(datetime(2024, 1, 31)) == datetime(2024, 2, 29)

    def test_monthly_clamps_in_common_year(self):
        assert PaymentFrequency.MONTHLY.next_date(datetime(2023, 1, 31)) == datetime(2023, 2, 28)

    def test_yearly_from_leap_day(self):
        assert PaymentFrequency.YEARLY.next_date(datetime(2024, 2, 29)) == datetime(2025, 2, 28)

    def test_daily_and_weekly(self):
        start = datetime(2024, 12, 31, 9, 30)
        assert PaymentFrequency.DAILY.next_date(start) == datetime(2025, 1, 1, 9, 30)
        assert PaymentFrequency.WEEKLY.next_date(start) == datetime(2025, 1, 7, 9, 30)

    def test_overflow_is_explicit(self):
        """Test that an unrepresentable date raises instead of wrapping."""
        with pytest.raises(ScheduleOverflowError):
            PaymentFrequency.DAILY.next_date(datetime(9999, 12, 31))
        with pytest.raises(ScheduleOverflowError):
            PaymentFrequency.YEARLY.next_date(datetime(9999, 6, 1))


class TestRecurringPayment:
    """Tests for the recurring payment model."""

    def test_schedule_sets_first_occurrence_one_step_ahead(self):
        payment = RecurringPayment.schedule(
            amount=Decimal("50"),
            category=ExpenseCategory.BILLS,
            name="Phone",
            frequency=PaymentFrequency.WEEKLY,
            start_date=datetime(2024, 3, 1),
        )
        assert payment.next_occurrence == datetime(2024, 3, 8)
        assert payment.is_active

    def test_is_due_compares_dates_only(self):
        """Test that a payment due later today is already due."""
        payment = RecurringPayment(
            amount=Decimal("50"),
            category=ExpenseCategory.BILLS,
            name="Phone",
            start_date=datetime(2024, 2, 15),
            frequency=PaymentFrequency.MONTHLY,
            next_occurrence=datetime(2024, 3, 15, 23, 0),
        )
        assert payment.is_due(date(2024, 3, 15))
        assert not payment.is_due(date(2024, 3, 14))

    def test_paused_payment_is_never_due(self):
        payment = RecurringPayment(
            amount=Decimal("50"),
            category=ExpenseCategory.BILLS,
            name="Phone",
            start_date=datetime(2024, 2, 15),
            frequency=PaymentFrequency.MONTHLY,
            next_occurrence=datetime(2024, 3, 1),
            is_active=False,
        )
        assert not payment.is_due(date(2024, 3, 15))

    def test_materialize(self):
        """Test the expense is dated at the occurrence and the schedule advances one step."""
        payment = RecurringPayment(
            amount=Decimal("12.00"),
            category=ExpenseCategory.ENTERTAINMENT,
            name="Music",
            start_date=datetime(2023, 12, 31),
            frequency=PaymentFrequency.MONTHLY,
            next_occurrence=datetime(2024, 1, 31),
        )
        expense, advanced = payment.materialize()
        assert expense.date == datetime(2024, 1, 31)
        assert expense.amount == Decimal("12.00")
        assert expense.category == ExpenseCategory.ENTERTAINMENT
        assert expense.note == "Music (Recurring)"
        assert advanced.next_occurrence == datetime(2024, 2, 29)
        assert advanced.id == payment.id


class TestBudget:
    """Tests for the budget model."""

    def test_default_thresholds(self):
        assert Budget().notification_thresholds == [0.5, 0.75, 0.9, 1.0]

    def test_thresholds_sorted_and_deduplicated(self):
        budget = Budget(notification_thresholds=[1.0, 0.5, 0.5, 0.9])
        assert budget.notification_thresholds == [0.5, 0.9, 1.0]

    def test_category_limits_keyed_by_category(self):
        """Test that limit keys are category tags, never free strings."""
        budget = Budget(categoryLimits={"food": "60"})
        assert budget.limit_for(ExpenseCategory.FOOD) == Decimal("60.00")
        assert budget.limit_for(ExpenseCategory.TRAVEL) is None

        with pytest.raises(ValidationError):
            Budget(category_limits={"pets": "10"})

    def test_with_limit(self):
        budget = Budget(monthly_limit=Decimal("500"))
        updated = budget.with_limit(ExpenseCategory.FOOD, Decimal("100"))
        assert updated.limit_for(ExpenseCategory.FOOD) == Decimal("100.00")
        assert budget.limit_for(ExpenseCategory.FOOD) is None
        assert updated.with_limit(ExpenseCategory.FOOD, None).category_limits == {}


class TestSavingsModels:
    """Tests for goals and their transactions."""

    def test_progress_capped_at_one(self):
        goal = SavingsGoal(name="Bike", target_amount=Decimal("100"), current_amount=Decimal("150"))
        assert goal.progress == 1.0
        assert goal.is_completed
        assert goal.remaining == Decimal("0.00")

    def test_suggested_daily_amount(self):
        goal = SavingsGoal(
            name="Trip",
            target_amount=Decimal("100"),
            current_amount=Decimal("40"),
            created_at=datetime(2024, 3, 1),
            deadline=datetime(2024, 3, 25),
        )
        assert goal.days_remaining(date(2024, 3, 15)) == 10
        assert goal.suggested_daily_amount(date(2024, 3, 15)) == Decimal("6.00")

    def test_suggested_daily_amount_absent(self):
        """Test no suggestion without a deadline or once it has passed."""
        no_deadline = SavingsGoal(name="Fund", target_amount=Decimal("100"))
        assert no_deadline.suggested_daily_amount(date(2024, 3, 15)) is None

        passed = SavingsGoal(
            name="Late",
            target_amount=Decimal("100"),
            created_at=datetime(2024, 1, 1),
            deadline=datetime(2024, 3, 1),
        )
        assert passed.days_remaining(date(2024, 3, 15)) == 0
        assert passed.suggested_daily_amount(date(2024, 3, 15)) is None

    def test_goal_defaults(self):
        goal = SavingsGoal(name="Fund", target_amount=Decimal("100"))
        assert goal.icon == "banknote.fill"
        assert goal.color_hex == "#F9BF13"
        assert goal.current_amount == Decimal("0.00")

    def test_signed_amount(self):
        goal_id = uuid4()
        deposit = SavingsTransaction(goal_id=goal_id, amount=Decimal("5"))
        withdrawal = SavingsTransaction(goal_id=goal_id, amount=Decimal("5"), is_deposit=False)
        assert deposit.signed_amount == Decimal("5.00")
        assert withdrawal.signed_amount == Decimal("-5.00")


class TestCategories:
    """Tests for the category lookup tables."""

    def test_every_category_has_metadata(self):
        assert set(EXPENSE_CATEGORY_TABLE) == set(ExpenseCategory)
        assert set(INCOME_CATEGORY_TABLE) == set(IncomeCategory)

    def test_category_values(self):
        assert ExpenseCategory.FOOD.value == "food"
        assert ExpenseCategory.FOOD.display_name == "Food"
        assert IncomeCategory.SALARY.display_name == "Salary"

    def test_custom_category_palette(self):
        custom = CustomCategory(name="Pets", icon="pawprint.fill", color_hex="#aabbcc")
        assert custom.color_hex == "#AABBCC"

        palette = category_palette("expense", [custom])
        assert len(palette) == len(ExpenseCategory) + 1
        assert palette[-1].display_name == "Pets"

        with pytest.raises(ValueError):
            category_palette("transfer")


class TestReportModels:
    """Tests for derived warning values."""

    def test_category_warning_message(self):
        warning = BudgetWarning(
            category=ExpenseCategory.FOOD,
            ratio=float(Decimal("80") / Decimal("60")),
            spent=Decimal("80"),
            limit=Decimal("60"),
        )
        assert warning.is_over_budget
        assert not warning.is_monthly
        assert warning.message == "You've used 133% of your Food budget"

    def test_spent_equal_to_limit_is_over_budget(self):
        warning = BudgetWarning(ratio=1.0, spent=Decimal("100"), limit=Decimal("100"))
        assert warning.is_monthly
        assert warning.is_over_budget
        assert warning.message == "You've used 100% of your monthly budget"


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_to_log_dict(self):
        record_id = uuid4()
        event = AuditEventBuilder.record_added(SnapshotCollection.EXPENSES.value, record_id)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "record_added"
        assert log_dict["entity_id"] == str(record_id)
        assert log_dict["entity_type"] == "expenses"

    def test_budget_warning_severity(self):
        """Test that an overrun is logged as a warning, an approach as info."""
        over = AuditEventBuilder.budget_warning("food", 1.2, Decimal("120"), Decimal("100"))
        near = AuditEventBuilder.budget_warning(None, 0.8, Decimal("80"), Decimal("100"))
        assert over.event_type == AuditEventType.BUDGET_WARNING_EMITTED
        assert over.severity == AuditSeverity.WARNING
        assert near.severity == AuditSeverity.INFO

    def test_broken_log_output_does_not_raise(self):
        """Test that a failing log handler leaves the caller unaffected."""
        class _BrokenLogger:
            def __getattr__(self, name):
                def fail(*args, **kwargs):
                    raise RuntimeError("handler down")
                return fail

        audit_logger = AuditLogger()
        audit_logger._logger = _BrokenLogger()
        event = AuditEventBuilder.persistence_failed("disk full")

        audit_logger.log(event)
        assert audit_logger.failed_writes == 1
        assert audit_logger.recent_events() == [event]


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(issues=[
            ValidationIssue(
                field="id",
                issue_type="duplicate_id",
                message="Duplicate",
                severity="error",
            ),
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Far ahead",
                severity="warning",
            ),
        ])
        assert result.has_errors
        assert result.error_count == 1
        assert not result.is_valid
        assert len(result.warnings) == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(issues=[
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Far ahead",
                severity="warning",
            ),
        ])
        assert result.is_valid


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
