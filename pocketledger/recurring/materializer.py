"""
Recurring Payment Materializer

Each payment moves through scheduled -> due -> materialized:
- scheduled: next_occurrence is after today
- due: active and next_occurrence (date only) is today or earlier
- materialized: an Expense dated at next_occurrence was recorded and
  next_occurrence advanced by exactly one frequency step

IMPORTANT: A run fires at most ONE transition per payment.
A payment that is several periods behind catches up one period per run.

All due payments of a run are applied in a single store mutation, so the
new expenses and the advanced schedules persist together.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from pocketledger.audit import AuditLogger
from pocketledger.config import get_settings
from pocketledger.models.audit import AuditEvent, AuditEventBuilder
from pocketledger.models.entities import (
    Expense,
    RecurringPayment,
    ScheduleOverflowError,
)
from pocketledger.models.notification import NotificationRequest
from pocketledger.models.snapshot import AppData, SnapshotCollection
from pocketledger.services.notifications import NotificationBuilder, NotificationDispatcher
from pocketledger.store import LedgerStore


class RecurringMaterializer:
    """
    Turns due recurring payments into expenses.
    """

    def __init__(
        self,
        store: LedgerStore,
        dispatcher: Optional[NotificationDispatcher] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    def due_payments(self, today: Optional[date] = None) -> list[RecurringPayment]:
        today = today or self._clock().date()
        return [p for p in self._store.recurring_payments if p.is_due(today)]

    def run(self, today: Optional[date] = None) -> list[Expense]:
        """
        Materialize every due payment once.

        Returns:
            The expenses recorded by this run, in payment order

        Raises:
            PersistenceError: The expenses are in memory and will be
                written by the next successful persist
        """
        today = today or self._clock().date()
        created: list[Expense] = []
        events: list[AuditEvent] = []

        def transform(snapshot: AppData) -> AppData:
            created.clear()
            events.clear()
            payments = []
            for payment in snapshot.recurring_payments:
                if not payment.is_due(today):
                    payments.append(payment)
                    continue
                expense, advanced = self._materialize(payment, events)
                created.append(expense)
                payments.append(advanced)

            if not created:
                return snapshot
            return snapshot.model_copy(update={
                "expenses": [*snapshot.expenses, *created],
                "recurring_payments": payments,
            })

        try:
            self._store.mutate(transform)
        finally:
            for event in events:
                self._audit_logger.log(event)

        return list(created)

    def _materialize(
        self,
        payment: RecurringPayment,
        events: list[AuditEvent],
    ) -> tuple[Expense, RecurringPayment]:
        try:
            expense, advanced = payment.materialize()
        except ScheduleOverflowError as e:
            # Record the due expense, then stop the schedule so the same
            # occurrence is never materialized twice
            expense = Expense(
                amount=payment.amount,
                category=payment.category,
                date=payment.next_occurrence,
                note=payment.expense_note,
            )
            advanced = payment.model_copy(update={"is_active": False})
            events.append(AuditEventBuilder.recurring_materialized(
                payment.id, expense.id, payment.next_occurrence, None
            ))
            events.append(AuditEventBuilder.recurring_deactivated(payment.id, str(e)))
            return expense, advanced

        events.append(AuditEventBuilder.recurring_materialized(
            payment.id, expense.id, payment.next_occurrence, advanced.next_occurrence
        ))
        return expense, advanced

    # =========================================================================
    # Pause / resume
    # =========================================================================

    def pause(self, payment_id: UUID) -> bool:
        """Stop materializing a payment. next_occurrence is left untouched."""
        return self._set_active(payment_id, False)

    def resume(self, payment_id: UUID) -> bool:
        """
        Start materializing a paused payment again.

        If it fell behind while paused it catches up one period per run.
        """
        return self._set_active(payment_id, True)

    def _set_active(self, payment_id: UUID, is_active: bool) -> bool:
        payment = self._store.find(SnapshotCollection.RECURRING_PAYMENTS, payment_id)
        if payment is None:
            return False
        if payment.is_active == is_active:
            return True
        return self._store.update_recurring_payment(
            payment.model_copy(update={"is_active": is_active})
        )

    # =========================================================================
    # Reminders
    # =========================================================================

    def remind_upcoming(
        self,
        days_before: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[NotificationRequest]:
        """
        Request a reminder for each active payment due exactly days_before
        days from today.

        Returns the requests handed to the dispatcher (empty without one).
        """
        if self._dispatcher is None:
            return []
        if days_before is None:
            days_before = get_settings().daily_reminder.recurring_days_before
        today = today or self._clock().date()
        target = today + timedelta(days=days_before)
        currency_code = get_settings().app.currency_code

        requests = []
        for payment in self._store.recurring_payments:
            if payment.is_active and payment.next_occurrence.date() == target:
                request = NotificationBuilder.recurring_payment_due(
                    payment, days_before, currency_code
                )
                self._dispatcher.notify(request)
                requests.append(request)
        return requests
