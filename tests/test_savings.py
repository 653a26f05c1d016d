"""
Tests for the savings ledger
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from pocketledger.models import AuditEventType
from pocketledger.savings import SavingsLedger
from pocketledger.services.storage import decode_snapshot
from pocketledger.validation import EntityValidationError


@pytest.fixture
def ledger(store, audit_logger, clock) -> SavingsLedger:
    return SavingsLedger(store, audit_logger=audit_logger, clock=clock)


class TestGoals:
    """Tests for goal creation and editing."""

    def test_create_goal(self, ledger):
        goal = ledger.create_goal("Bike", Decimal("500"), deadline=datetime(2024, 6, 1))
        assert goal.current_amount == Decimal("0.00")
        assert goal.created_at == datetime(2024, 3, 15, 12, 0)
        assert ledger.goals == [goal]

    def test_create_goal_with_initial_deposit(self, ledger):
        goal = ledger.create_goal("Bike", Decimal("500"), initial_deposit=Decimal("50"))
        assert goal.current_amount == Decimal("50.00")
        [transaction] = ledger.transactions_for(goal.id)
        assert transaction.is_deposit
        assert transaction.note == "Initial deposit"

    def test_update_goal_keeps_balance(self, ledger):
        goal = ledger.create_goal("Bike", Decimal("500"), initial_deposit=Decimal("50"))
        updated = ledger.update_goal(goal.id, name="E-Bike", target_amount=Decimal("900"), color_hex="#00ff00")
        assert updated.name == "E-Bike"
        assert updated.target_amount == Decimal("900.00")
        assert updated.current_amount == Decimal("50.00")
        assert ledger.get_goal(goal.id) == updated

    def test_update_goal_clears_deadline(self, ledger):
        goal = ledger.create_goal("Bike", Decimal("500"), deadline=datetime(2024, 6, 1))
        assert ledger.update_goal(goal.id, deadline=None).deadline is None
        assert ledger.update_goal(uuid4(), name="x") is None


class TestMovements:
    """Tests for deposits and withdrawals."""

    def test_deposit(self, ledger, store):
        goal = ledger.create_goal("Bike", Decimal("500"))
        transaction = ledger.deposit(goal.id, Decimal("120.50"), note="Bonus")
        assert transaction.amount == Decimal("120.50")
        assert transaction.is_deposit
        assert ledger.get_goal(goal.id).current_amount == Decimal("120.50")
        assert store.savings_transactions == [transaction]

    def test_withdraw_is_clamped(self, ledger):
        """Test that a withdrawal never takes the balance below zero."""
        goal = ledger.create_goal("Bike", Decimal("500"), initial_deposit=Decimal("30"))
        transaction = ledger.withdraw(goal.id, Decimal("100"))
        assert transaction.amount == Decimal("30.00")
        assert not transaction.is_deposit
        assert ledger.get_goal(goal.id).current_amount == Decimal("0.00")

    def test_withdraw_from_empty_goal_records_nothing(self, ledger, store):
        goal = ledger.create_goal("Bike", Decimal("500"))
        assert ledger.withdraw(goal.id, Decimal("10")) is None
        assert store.savings_transactions == []

    def test_unknown_goal_is_noop(self, ledger, store, storage):
        writes = storage.write_count
        assert ledger.deposit(uuid4(), Decimal("10")) is None
        assert ledger.withdraw(uuid4(), Decimal("10")) is None
        assert storage.write_count == writes

    def test_amount_must_be_positive(self, ledger):
        goal = ledger.create_goal("Bike", Decimal("500"))
        with pytest.raises(EntityValidationError):
            ledger.deposit(goal.id, Decimal("0"))
        with pytest.raises(EntityValidationError):
            ledger.withdraw(goal.id, Decimal("-5"))
        with pytest.raises(EntityValidationError):
            ledger.deposit(goal.id, "not a number")

    def test_balance_matches_transactions(self, ledger, store):
        goal = ledger.create_goal("Bike", Decimal("500"))
        ledger.deposit(goal.id, Decimal("100"))
        ledger.withdraw(goal.id, Decimal("40"))
        ledger.deposit(goal.id, Decimal("5.25"))
        net = sum(t.signed_amount for t in ledger.transactions_for(goal.id))
        assert ledger.get_goal(goal.id).current_amount == net == Decimal("65.25")

    def test_goal_and_transaction_persist_together(self, ledger, storage):
        goal = ledger.create_goal("Bike", Decimal("500"))
        writes = storage.write_count
        ledger.deposit(goal.id, Decimal("10"))
        assert storage.write_count == writes + 1
        persisted = decode_snapshot(storage.read("TestLedger")).snapshot
        assert persisted.savings_goals[0].current_amount == Decimal("10.00")
        assert len(persisted.savings_transactions) == 1

    def test_movements_are_audited(self, ledger, audit_logger):
        goal = ledger.create_goal("Bike", Decimal("500"))
        ledger.deposit(goal.id, Decimal("10"))
        ledger.withdraw(goal.id, Decimal("4"))
        types = [e.event_type for e in audit_logger.recent_events()]
        assert AuditEventType.SAVINGS_DEPOSIT in types
        assert AuditEventType.SAVINGS_WITHDRAWAL in types


class TestQueries:
    """Tests for deletion and totals."""

    def test_delete_goal_cascades(self, ledger, store):
        goal = ledger.create_goal("Bike", Decimal("500"), initial_deposit=Decimal("20"))
        keep = ledger.create_goal("Car", Decimal("5000"), initial_deposit=Decimal("80"))
        assert ledger.delete_goal(goal.id)
        assert ledger.transactions_for(goal.id) == []
        assert len(store.savings_transactions) == 1
        assert ledger.total_savings() == Decimal("80.00")
        assert ledger.goals == [ledger.get_goal(keep.id)]

    def test_delete_unknown_goal(self, ledger):
        assert not ledger.delete_goal(uuid4())

    def test_total_savings_empty(self, ledger):
        assert ledger.total_savings() == Decimal("0")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
