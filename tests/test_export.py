"""
Tests for CSV export
"""

import pytest
from datetime import datetime
from decimal import Decimal

from pocketledger.export import (
    ExportError,
    export_expenses_csv,
    export_file_name,
    generate_expenses_csv,
)
from pocketledger.models import Expense, ExpenseCategory


class TestCsvExport:
    """Tests for CSV generation and file export."""

    def test_header_only_when_empty(self):
        assert generate_expenses_csv([]) == "Date,Category,Amount,Note\n"

    def test_rows_newest_first(self):
        expenses = [
            Expense(amount=Decimal("5"), category=ExpenseCategory.FOOD, date=datetime(2024, 3, 1)),
            Expense(
                amount=Decimal("12.5"),
                category=ExpenseCategory.TRANSPORT,
                date=datetime(2024, 3, 2),
                note="Taxi",
            ),
        ]
        assert generate_expenses_csv(expenses).splitlines() == [
            "Date,Category,Amount,Note",
            "2024-03-02,Transport,12.50,Taxi",
            "2024-03-01,Food,5.00,",
        ]

    def test_notes_are_quoted(self):
        expense = Expense(
            amount=Decimal("1"),
            category=ExpenseCategory.OTHER,
            date=datetime(2024, 3, 1),
            note='Coffee, "large"',
        )
        row = generate_expenses_csv([expense]).splitlines()[1]
        assert row == '2024-03-01,Other,1.00,"Coffee, ""large"""'

    def test_file_name(self):
        assert export_file_name(datetime(2024, 3, 15, 9, 5)) == "Expenses_2024-03-15_0905.csv"

    def test_export_writes_file(self, tmp_path):
        expense = Expense(amount=Decimal("5"), category=ExpenseCategory.FOOD, date=datetime(2024, 3, 1))
        path = export_expenses_csv([expense], tmp_path, now=datetime(2024, 3, 15, 9, 5))
        assert path == tmp_path / "Expenses_2024-03-15_0905.csv"
        assert path.read_text(encoding="utf-8").startswith("Date,Category,Amount,Note\n")

    def test_export_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            export_expenses_csv([], blocker / "sub")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
