"""
Audit Models for Pocket Ledger

Every significant action against the ledger is logged for audit purposes.
This provides:
1. Traceability of every store mutation
2. Debugging information when persistence or delivery fails
3. A record of what the materializer and budget evaluator did

DESIGN DECISION: Audit events are emitted, never stored in the snapshot.
The snapshot holds user data only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Snapshot lifecycle
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_RESET = "snapshot_reset"
    RECORD_SKIPPED = "record_skipped"
    INVARIANT_VIOLATION = "invariant_violation"

    # Store mutations
    RECORD_ADDED = "record_added"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    BUDGET_SAVED = "budget_saved"
    BUDGET_CLEARED = "budget_cleared"
    DATA_CLEARED = "data_cleared"
    PERSISTENCE_FAILED = "persistence_failed"

    # Recurring payments
    RECURRING_MATERIALIZED = "recurring_materialized"
    RECURRING_DEACTIVATED = "recurring_deactivated"

    # Budget
    BUDGET_WARNING_EMITTED = "budget_warning_emitted"

    # Savings
    SAVINGS_DEPOSIT = "savings_deposit"
    SAVINGS_WITHDRAWAL = "savings_withdrawal"
    SAVINGS_GOAL_DELETED = "savings_goal_deleted"

    # Collaborators
    NOTIFICATION_SENT = "notification_sent"
    NOTIFICATION_FAILED = "notification_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expenses', 'savings_goals')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added("expenses", expense.id)
        event = AuditEventBuilder.persistence_failed(str(e))
    """

    @staticmethod
    def snapshot_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description=f"Snapshot loaded with {sum(counts.values())} records",
            details=counts,
        )

    @staticmethod
    def snapshot_reset(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_RESET,
            severity=AuditSeverity.ERROR,
            description="Persisted snapshot could not be decoded; starting empty",
            error_message=reason,
        )

    @staticmethod
    def record_skipped(collection: str, index: int, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type=collection,
            description=f"Skipped malformed record #{index} in {collection}",
            error_message=reason,
            details={"index": index},
        )

    @staticmethod
    def invariant_violation(field: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVARIANT_VIOLATION,
            severity=AuditSeverity.WARNING,
            description=message,
            details={"field": field},
        )

    @staticmethod
    def record_added(collection: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            entity_type=collection,
            entity_id=record_id,
            description=f"Record added to {collection}",
        )

    @staticmethod
    def record_updated(collection: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=collection,
            entity_id=record_id,
            description=f"Record replaced in {collection}",
        )

    @staticmethod
    def record_deleted(collection: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=collection,
            entity_id=record_id,
            description=f"Record deleted from {collection}",
        )

    @staticmethod
    def budget_saved(monthly_limit: Optional[Decimal], category_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            entity_type="budget",
            description="Budget saved",
            details={
                "monthly_limit": str(monthly_limit) if monthly_limit is not None else None,
                "category_limits": category_count,
            },
        )

    @staticmethod
    def budget_cleared() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CLEARED,
            entity_type="budget",
            description="Budget removed",
        )

    @staticmethod
    def data_cleared() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="All ledger data cleared",
        )

    @staticmethod
    def persistence_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Snapshot could not be persisted; in-memory copy kept",
            error_message=error_message,
        )

    @staticmethod
    def recurring_materialized(
        payment_id: UUID,
        expense_id: UUID,
        occurrence: datetime,
        next_occurrence: Optional[datetime],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_MATERIALIZED,
            entity_type="recurring_payments",
            entity_id=payment_id,
            description=f"Recurring payment materialized for {occurrence.date().isoformat()}",
            details={
                "expense_id": str(expense_id),
                "occurrence": occurrence.isoformat(),
                "next_occurrence": next_occurrence.isoformat() if next_occurrence else None,
            },
        )

    @staticmethod
    def recurring_deactivated(payment_id: UUID, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_DEACTIVATED,
            severity=AuditSeverity.WARNING,
            entity_type="recurring_payments",
            entity_id=payment_id,
            description="Recurring payment deactivated: schedule cannot advance",
            error_message=reason,
        )

    @staticmethod
    def budget_warning(
        category: Optional[str],
        ratio: float,
        spent: Decimal,
        limit: Decimal,
    ) -> AuditEvent:
        scope = category or "monthly"
        return AuditEvent(
            event_type=AuditEventType.BUDGET_WARNING_EMITTED,
            severity=AuditSeverity.WARNING if spent >= limit else AuditSeverity.INFO,
            entity_type="budget",
            description=f"Budget warning ({scope}): {ratio:.0%} used",
            details={
                "category": category,
                "ratio": ratio,
                "spent": str(spent),
                "limit": str(limit),
            },
        )

    @staticmethod
    def savings_movement(
        goal_id: UUID,
        transaction_id: UUID,
        amount: Decimal,
        is_deposit: bool,
        balance: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.SAVINGS_DEPOSIT
                if is_deposit
                else AuditEventType.SAVINGS_WITHDRAWAL
            ),
            entity_type="savings_goals",
            entity_id=goal_id,
            description=f"{'Deposit' if is_deposit else 'Withdrawal'} of {amount}",
            details={
                "transaction_id": str(transaction_id),
                "amount": str(amount),
                "balance": str(balance),
            },
        )

    @staticmethod
    def savings_goal_deleted(goal_id: UUID, transactions_removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_GOAL_DELETED,
            entity_type="savings_goals",
            entity_id=goal_id,
            description="Savings goal deleted with its transactions",
            details={"transactions_removed": transactions_removed},
        )

    @staticmethod
    def notification_sent(kind: str, identifier: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_SENT,
            severity=AuditSeverity.DEBUG,
            entity_type="notification",
            description=f"Notification handed off: {kind}",
            details={"identifier": identifier},
        )

    @staticmethod
    def notification_failed(kind: str, identifier: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="notification",
            description=f"Notification delivery failed: {kind}",
            error_message=error_message,
            details={"identifier": identifier},
        )
