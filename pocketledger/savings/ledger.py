"""
Savings Ledger

DESIGN DECISION: A goal's balance is backed by an append-only log.
- deposit: current += amount, log a deposit
- withdraw: effective = min(amount, current), current -= effective,
  log a withdrawal of the effective amount
- a goal's balance is never edited directly

The goal update and its transaction are one store mutation, so they
are persisted together or not at all.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

from pocketledger.audit import AuditLogger
from pocketledger.models.audit import AuditEventBuilder
from pocketledger.models.entities import (
    ZERO,
    SavingsGoal,
    SavingsTransaction,
    quantize_money,
)
from pocketledger.models.snapshot import AppData, SnapshotCollection
from pocketledger.store import LedgerStore
from pocketledger.store.transforms import update_by_id
from pocketledger.validation import EntityValidationError, ValidationIssue


_UNSET = object()


def _require_positive(amount) -> Decimal:
    try:
        value = quantize_money(Decimal(str(amount)))
    except (InvalidOperation, ValueError):
        value = ZERO
    if value <= 0:
        raise EntityValidationError([ValidationIssue(
            field="amount",
            issue_type="not_positive",
            message="Amount must be greater than zero",
            severity="error",
        )])
    return value


class SavingsLedger:
    """
    Goals and their deposit/withdrawal history.
    """

    def __init__(
        self,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    # =========================================================================
    # Goals
    # =========================================================================

    @property
    def goals(self) -> list[SavingsGoal]:
        return self._store.savings_goals

    def get_goal(self, goal_id: UUID) -> Optional[SavingsGoal]:
        return self._store.find(SnapshotCollection.SAVINGS_GOALS, goal_id)

    def create_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: Optional[datetime] = None,
        icon: Optional[str] = None,
        color_hex: Optional[str] = None,
        initial_deposit: Optional[Decimal] = None,
    ) -> SavingsGoal:
        """
        Create a goal at a zero balance.

        An initial deposit is recorded as a normal deposit transaction.
        """
        fields = {
            "name": name,
            "target_amount": target_amount,
            "deadline": deadline,
            "created_at": self._clock(),
        }
        if icon:
            fields["icon"] = icon
        if color_hex:
            fields["color_hex"] = color_hex
        goal = self._store.add_savings_goal(SavingsGoal(**fields))

        if initial_deposit:
            self.deposit(goal.id, initial_deposit, note="Initial deposit")
            goal = self.get_goal(goal.id)
        return goal

    def update_goal(
        self,
        goal_id: UUID,
        name: Optional[str] = None,
        target_amount: Optional[Decimal] = None,
        deadline=_UNSET,
        icon: Optional[str] = None,
        color_hex: Optional[str] = None,
    ) -> Optional[SavingsGoal]:
        """
        Edit a goal's details. The balance can't be changed here.

        Pass deadline=None to remove a deadline. Returns None for an unknown goal.
        """
        goal = self.get_goal(goal_id)
        if goal is None:
            return None

        data = goal.model_dump()
        if name is not None:
            data["name"] = name
        if target_amount is not None:
            data["target_amount"] = target_amount
        if deadline is not _UNSET:
            data["deadline"] = deadline
        if icon is not None:
            data["icon"] = icon
        if color_hex is not None:
            data["color_hex"] = color_hex

        updated = SavingsGoal(**data)
        self._store.update_savings_goal(updated)
        return updated

    def delete_goal(self, goal_id: UUID) -> bool:
        """Delete a goal and all of its transactions."""
        return self._store.delete_savings_goal(goal_id)

    # =========================================================================
    # Movements
    # =========================================================================

    def deposit(
        self,
        goal_id: UUID,
        amount: Decimal,
        note: Optional[str] = None,
    ) -> Optional[SavingsTransaction]:
        """
        Add money to a goal.

        Returns:
            The recorded transaction, or None if the goal doesn't exist

        Raises:
            EntityValidationError: If amount is not greater than zero
        """
        amount = _require_positive(amount)
        return self._apply(goal_id, amount, note, is_deposit=True)

    def withdraw(
        self,
        goal_id: UUID,
        amount: Decimal,
        note: Optional[str] = None,
    ) -> Optional[SavingsTransaction]:
        """
        Take money out of a goal, never below zero.

        The recorded amount is min(amount, current balance). If that is
        zero nothing is recorded.

        Returns:
            The recorded transaction, or None when the goal doesn't exist
            or has nothing to withdraw

        Raises:
            EntityValidationError: If amount is not greater than zero
        """
        amount = _require_positive(amount)
        return self._apply(goal_id, amount, note, is_deposit=False)

    def _apply(
        self,
        goal_id: UUID,
        amount: Decimal,
        note: Optional[str],
        is_deposit: bool,
    ) -> Optional[SavingsTransaction]:
        recorded: list[tuple[SavingsTransaction, Decimal]] = []

        def transform(snapshot: AppData) -> AppData:
            recorded.clear()
            goal = snapshot.find(SnapshotCollection.SAVINGS_GOALS, goal_id)
            if goal is None:
                return snapshot

            if is_deposit:
                effective = amount
                balance = goal.current_amount + amount
            else:
                effective = min(amount, goal.current_amount)
                balance = goal.current_amount - effective
            if effective <= 0:
                return snapshot

            transaction = SavingsTransaction(
                goal_id=goal_id,
                amount=effective,
                date=self._clock(),
                note=note,
                is_deposit=is_deposit,
            )
            goals, _ = update_by_id(
                snapshot.savings_goals,
                goal.model_copy(update={"current_amount": balance}),
            )
            recorded.append((transaction, balance))
            return snapshot.model_copy(update={
                "savings_goals": goals,
                "savings_transactions": [*snapshot.savings_transactions, transaction],
            })

        try:
            self._store.mutate(transform)
        finally:
            for transaction, balance in recorded:
                self._audit_logger.log(AuditEventBuilder.savings_movement(
                    goal_id, transaction.id, transaction.amount, is_deposit, balance
                ))

        return recorded[0][0] if recorded else None

    # =========================================================================
    # Queries
    # =========================================================================

    def transactions_for(self, goal_id: UUID) -> list[SavingsTransaction]:
        """A goal's transactions, newest first."""
        return sorted(
            self._store.transactions_for(goal_id),
            key=lambda t: t.date,
            reverse=True,
        )

    def total_savings(self) -> Decimal:
        return sum((goal.current_amount for goal in self.goals), ZERO)
