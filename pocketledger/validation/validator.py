"""
Two-Stage Entity Validation

STAGE 1 - SCHEMA VALIDATION:
- Types, required fields, amount > 0, 2-decimal money
- Done by the pydantic models at construction time

STAGE 2 - SEMANTIC VALIDATION (this module):
- Checks that need the rest of the snapshot
- Duplicate ids, dangling goal references
- Schedules that would move backwards
- Goal balances changed outside the savings ledger

IMPORTANT: Validation runs before a mutation is applied.
A rejected change is never partially applied.
Only error-severity issues block; warnings are reported and logged.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from pocketledger.config import AppSettings, get_settings
from pocketledger.models.entities import (
    ZERO,
    Budget,
    CustomCategory,
    Expense,
    Income,
    RecurringPayment,
    SavingsGoal,
    SavingsTransaction,
)
from pocketledger.models.snapshot import COLLECTION_TYPES, AppData, SnapshotCollection


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'duplicate_id', 'dangling_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of semantic validation."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]


class EntityValidationError(ValueError):
    """A change was rejected before being applied."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        errors = [i.message for i in issues if i.severity == "error"] or ["Invalid entity"]
        super().__init__("; ".join(errors))


class EntityValidator:
    """
    Validates records against the snapshot they're about to enter.
    """

    # Records dated further ahead than this get a warning, not an error
    FUTURE_DATE_TOLERANCE = timedelta(days=366)

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def require(self, result: ValidationResult) -> ValidationResult:
        """
        Raise if the result has errors.

        Raises:
            EntityValidationError: With every issue attached
        """
        if result.has_errors:
            raise EntityValidationError(result.issues)
        return result

    def validate_new(
        self,
        collection: SnapshotCollection,
        record,
        snapshot: AppData,
    ) -> ValidationResult:
        """Check a record about to be appended."""
        issues = self._check_type(collection, record)
        if issues:
            return ValidationResult(issues=issues)

        if snapshot.find(collection, record.id) is not None:
            issues.append(ValidationIssue(
                field="id",
                issue_type="duplicate_id",
                message=f"A record with id {record.id} already exists in {collection.value}",
                severity="error",
                suggested_fix="Use update to replace an existing record",
            ))

        issues.extend(self._check_record(collection, record, snapshot))
        return ValidationResult(issues=issues)

    def validate_replacement(
        self,
        collection: SnapshotCollection,
        record,
        snapshot: AppData,
    ) -> ValidationResult:
        """Check a record about to replace the one with the same id."""
        issues = self._check_type(collection, record)
        if issues:
            return ValidationResult(issues=issues)

        existing = snapshot.find(collection, record.id)

        if isinstance(record, RecurringPayment) and existing is not None:
            if record.next_occurrence < existing.next_occurrence:
                issues.append(ValidationIssue(
                    field="next_occurrence",
                    issue_type="schedule_regressed",
                    message="A recurring payment's next occurrence can only move forward",
                    severity="error",
                ))

        if isinstance(record, SavingsGoal) and existing is not None:
            if record.current_amount != existing.current_amount:
                issues.append(ValidationIssue(
                    field="current_amount",
                    issue_type="balance_changed",
                    message="A goal's balance only changes through deposits and withdrawals",
                    severity="error",
                    suggested_fix="Use the savings ledger to deposit or withdraw",
                ))

        issues.extend(self._check_record(collection, record, snapshot, replacing=True))
        return ValidationResult(issues=issues)

    def validate_budget(self, budget: Budget) -> ValidationResult:
        """Budget keys are typed by the model; this only reports soft problems."""
        issues = []
        if budget.monthly_limit is not None and budget.monthly_limit > 0:
            configured = sum(
                (limit for limit in budget.category_limits.values() if limit > 0),
                ZERO,
            )
            if configured > budget.monthly_limit:
                issues.append(ValidationIssue(
                    field="category_limits",
                    issue_type="limits_exceed_monthly",
                    message=(
                        f"Category limits add up to {configured}, "
                        f"more than the monthly limit of {budget.monthly_limit}"
                    ),
                    severity="warning",
                ))
        return ValidationResult(issues=issues)

    def check_snapshot(self, snapshot: AppData) -> ValidationResult:
        """
        Check whole-snapshot invariants.

        Used on load; violations are reported, not repaired.
        """
        issues = []

        goal_ids = {goal.id for goal in snapshot.savings_goals}
        for goal in snapshot.savings_goals:
            net = sum(
                (t.signed_amount for t in snapshot.transactions_for(goal.id)),
                ZERO,
            )
            if net != goal.current_amount:
                issues.append(ValidationIssue(
                    field="savings_goals",
                    issue_type="balance_mismatch",
                    message=(
                        f"Goal {goal.id} balance {goal.current_amount} "
                        f"does not match its transactions ({net})"
                    ),
                    severity="warning",
                ))

        orphans = [t for t in snapshot.savings_transactions if t.goal_id not in goal_ids]
        if orphans:
            issues.append(ValidationIssue(
                field="savings_transactions",
                issue_type="dangling_reference",
                message=f"{len(orphans)} savings transaction(s) reference a missing goal",
                severity="warning",
            ))

        for collection in SnapshotCollection:
            ids = [record.id for record in snapshot.records(collection)]
            if len(ids) != len(set(ids)):
                issues.append(ValidationIssue(
                    field=collection.value,
                    issue_type="duplicate_id",
                    message=f"Duplicate ids in {collection.value}",
                    severity="warning",
                ))

        return ValidationResult(issues=issues)

    def _check_type(self, collection: SnapshotCollection, record) -> list[ValidationIssue]:
        expected = COLLECTION_TYPES[collection]
        if not isinstance(record, expected):
            return [ValidationIssue(
                field=collection.value,
                issue_type="wrong_type",
                message=f"{collection.value} holds {expected.__name__}, got {type(record).__name__}",
                severity="error",
            )]
        return []

    def _check_record(
        self,
        collection: SnapshotCollection,
        record,
        snapshot: AppData,
        replacing: bool = False,
    ) -> list[ValidationIssue]:
        issues = []

        if isinstance(record, (Expense, Income)):
            if record.note and len(record.note) > self._settings.max_note_length:
                issues.append(ValidationIssue(
                    field="note",
                    issue_type="too_long",
                    message=f"Note is longer than {self._settings.max_note_length} characters",
                    severity="error",
                ))
            if record.date - datetime.now() > self.FUTURE_DATE_TOLERANCE:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Date {record.date.date().isoformat()} is more than a year ahead",
                    severity="warning",
                ))

        elif isinstance(record, SavingsTransaction):
            if snapshot.find(SnapshotCollection.SAVINGS_GOALS, record.goal_id) is None:
                issues.append(ValidationIssue(
                    field="goal_id",
                    issue_type="dangling_reference",
                    message=f"Savings goal {record.goal_id} does not exist",
                    severity="error",
                ))

        elif isinstance(record, RecurringPayment):
            if record.next_occurrence < record.start_date:
                issues.append(ValidationIssue(
                    field="next_occurrence",
                    issue_type="before_start",
                    message="Next occurrence cannot be before the start date",
                    severity="error",
                ))

        elif isinstance(record, SavingsGoal):
            if not replacing and record.current_amount != Decimal("0"):
                issues.append(ValidationIssue(
                    field="current_amount",
                    issue_type="unbacked_balance",
                    message="A new goal starts at 0; add an opening deposit instead",
                    severity="error",
                ))
            if record.deadline is not None and record.deadline < record.created_at:
                issues.append(ValidationIssue(
                    field="deadline",
                    issue_type="deadline_passed",
                    message="Deadline is before the goal was created",
                    severity="warning",
                ))

        elif isinstance(record, CustomCategory):
            name = record.name.casefold()
            for other in snapshot.records(collection):
                if other.id != record.id and other.name.casefold() == name:
                    issues.append(ValidationIssue(
                        field="name",
                        issue_type="duplicate_name",
                        message=f"A category named '{record.name}' already exists",
                        severity="error",
                    ))
                    break

        return issues
