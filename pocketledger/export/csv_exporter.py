"""
CSV Export

Exports read-only expense lists. Callers must pass the expenses as they
are after recurring materialization; the orchestrator's ExportFlow does
this for you.
"""

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from pocketledger.models.entities import Expense


CSV_COLUMNS = ["Date", "Category", "Amount", "Note"]


class ExportError(Exception):
    """The export file could not be written."""
    pass


def expenses_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    """One row per expense, newest first."""
    ordered = sorted(expenses, key=lambda e: e.date, reverse=True)
    rows = [
        {
            "Date": expense.date.strftime("%Y-%m-%d"),
            "Category": expense.category.display_name,
            "Amount": f"{expense.amount:.2f}",
            "Note": expense.note or "",
        }
        for expense in ordered
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def generate_expenses_csv(expenses: Iterable[Expense]) -> str:
    """
    Render expenses as CSV text.

    Columns are Date,Category,Amount,Note. Notes containing commas,
    quotes or newlines are quoted.
    """
    return expenses_frame(expenses).to_csv(index=False, lineterminator="\n")


def export_file_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Expenses_{now.strftime('%Y-%m-%d_%H%M')}.csv"


def export_expenses_csv(
    expenses: Iterable[Expense],
    directory: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> Path:
    """
    Write the CSV to a timestamped file and return its path.

    Args:
        expenses: Post-materialization expenses
        directory: Target directory (defaults to the system temp directory)
        now: Timestamp for the file name

    Raises:
        ExportError: If the file can't be written
    """
    directory = Path(directory) if directory else Path(tempfile.gettempdir())
    path = directory / export_file_name(now)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(generate_expenses_csv(expenses), encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path
