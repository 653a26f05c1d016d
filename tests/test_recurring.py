"""
Tests for recurring payment materialization
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pocketledger.models import (
    AuditEventType,
    ExpenseCategory,
    NotificationKind,
    PaymentFrequency,
    RecurringPayment,
)
from pocketledger.recurring import RecurringMaterializer
from pocketledger.services.storage import PersistenceError, decode_snapshot


def _payment(next_occurrence, frequency=PaymentFrequency.MONTHLY, **overrides) -> RecurringPayment:
    fields = {
        "amount": Decimal("15.00"),
        "category": ExpenseCategory.ENTERTAINMENT,
        "name": "Streaming",
        "start_date": datetime(2023, 12, 31),
        "frequency": frequency,
        "next_occurrence": next_occurrence,
    }
    fields.update(overrides)
    return RecurringPayment(**fields)


@pytest.fixture
def materializer(store, dispatcher, audit_logger, clock) -> RecurringMaterializer:
    return RecurringMaterializer(store, dispatcher=dispatcher, audit_logger=audit_logger, clock=clock)


class TestMaterializer:
    """Tests for RecurringMaterializer.run()."""

    def test_due_payment_materializes_once(self, store, materializer):
        """Test one expense dated at the occurrence and one step forward."""
        payment = store.add_recurring_payment(_payment(datetime(2024, 1, 31)))

        created = materializer.run(today=date(2024, 1, 31))

        assert len(created) == 1
        expense = created[0]
        assert expense.date == datetime(2024, 1, 31)
        assert expense.amount == Decimal("15.00")
        assert expense.category == ExpenseCategory.ENTERTAINMENT
        assert expense.note == "Streaming (Recurring)"
        assert store.expenses == created
        assert store.recurring_payments[0].id == payment.id
        assert store.recurring_payments[0].next_occurrence == datetime(2024, 2, 29)

    def test_one_period_per_call(self, store, materializer):
        """Test that a payment three periods behind catches up over three runs."""
        store.add_recurring_payment(_payment(datetime(2024, 1, 1)))
        today = date(2024, 3, 15)

        assert len(materializer.run(today)) == 1
        assert len(materializer.run(today)) == 1
        assert len(materializer.run(today)) == 1
        assert materializer.run(today) == []

        assert [e.date for e in store.expenses] == [
            datetime(2024, 1, 1),
            datetime(2024, 2, 1),
            datetime(2024, 3, 1),
        ]
        assert store.recurring_payments[0].next_occurrence == datetime(2024, 4, 1)

    def test_not_yet_due(self, store, materializer):
        store.add_recurring_payment(_payment(datetime(2024, 3, 16)))
        assert materializer.run(date(2024, 3, 15)) == []
        assert store.expenses == []

    def test_paused_payment_untouched(self, store, materializer):
        payment = store.add_recurring_payment(_payment(datetime(2024, 3, 1), is_active=False))
        assert materializer.run(date(2024, 3, 15)) == []
        assert store.recurring_payments == [payment]

    def test_uses_clock_for_today(self, store, materializer):
        store.add_recurring_payment(_payment(datetime(2024, 3, 15, 18, 0)))
        assert len(materializer.run()) == 1

    def test_persists_in_one_write(self, store, storage, materializer):
        store.add_recurring_payment(_payment(datetime(2024, 3, 1)))
        store.add_recurring_payment(_payment(datetime(2024, 3, 2), PaymentFrequency.WEEKLY))
        writes = storage.write_count

        materializer.run(date(2024, 3, 15))

        assert storage.write_count == writes + 1
        persisted = decode_snapshot(storage.read("TestLedger")).snapshot
        assert len(persisted.expenses) == 2
        assert persisted.recurring_payments[1].next_occurrence == datetime(2024, 3, 9)

    def test_no_write_when_nothing_due(self, store, storage, materializer):
        store.add_recurring_payment(_payment(datetime(2024, 4, 1)))
        writes = storage.write_count
        materializer.run(date(2024, 3, 15))
        assert storage.write_count == writes

    def test_overflow_records_expense_and_deactivates(self, store, materializer, audit_logger):
        store.add_recurring_payment(_payment(
            datetime(9999, 12, 31),
            PaymentFrequency.DAILY,
            start_date=datetime(9999, 12, 30),
        ))

        created = materializer.run(date(9999, 12, 31))

        assert len(created) == 1
        assert created[0].date == datetime(9999, 12, 31)
        payment = store.recurring_payments[0]
        assert not payment.is_active
        assert payment.next_occurrence == datetime(9999, 12, 31)
        assert materializer.run(date(9999, 12, 31)) == []
        assert any(
            e.event_type == AuditEventType.RECURRING_DEACTIVATED
            for e in audit_logger.recent_events()
        )

    def test_persistence_failure_keeps_materialized_state(self, store, storage, materializer):
        store.add_recurring_payment(_payment(datetime(2024, 3, 1)))
        storage.fail_writes = True

        with pytest.raises(PersistenceError):
            materializer.run(date(2024, 3, 15))

        # In memory already; a retry run must not materialize it again
        assert len(store.expenses) == 1
        storage.fail_writes = False
        assert materializer.run(date(2024, 3, 15)) == []
        assert len(decode_snapshot(storage.read("TestLedger")).snapshot.expenses) == 1


class TestPauseResume:
    """Tests for pause() and resume()."""

    def test_pause_and_resume(self, store, materializer):
        payment = store.add_recurring_payment(_payment(datetime(2024, 3, 1)))

        assert materializer.pause(payment.id)
        assert materializer.run(date(2024, 3, 15)) == []
        assert store.recurring_payments[0].next_occurrence == datetime(2024, 3, 1)

        assert materializer.resume(payment.id)
        assert len(materializer.run(date(2024, 3, 15))) == 1

    def test_unknown_payment(self, materializer):
        assert not materializer.pause(uuid4())


class TestReminders:
    """Tests for upcoming payment reminders."""

    def test_remind_upcoming(self, store, materializer, sender):
        tomorrow = store.add_recurring_payment(_payment(datetime(2024, 3, 16, 9, 0), name="Gym"))
        store.add_recurring_payment(_payment(datetime(2024, 3, 20), name="Rent"))
        store.add_recurring_payment(_payment(datetime(2024, 3, 16), name="Paused", is_active=False))

        requests = materializer.remind_upcoming(days_before=1, today=date(2024, 3, 15))

        assert [r.identifier for r in requests] == [f"recurring-{tomorrow.id}"]
        [delivered] = sender.drain()
        assert delivered.kind == NotificationKind.RECURRING_PAYMENT_DUE_REMINDER
        assert delivered.body == "Gym ($15.00) is due tomorrow"

    def test_no_dispatcher_no_reminders(self, store, audit_logger):
        materializer = RecurringMaterializer(store, audit_logger=audit_logger)
        store.add_recurring_payment(_payment(datetime(2024, 3, 16)))
        assert materializer.remind_upcoming(1, date(2024, 3, 15)) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
