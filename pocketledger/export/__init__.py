"""Export package."""

from pocketledger.export.csv_exporter import (
    CSV_COLUMNS,
    ExportError,
    export_expenses_csv,
    export_file_name,
    generate_expenses_csv,
)

__all__ = [
    "CSV_COLUMNS",
    "ExportError",
    "export_expenses_csv",
    "export_file_name",
    "generate_expenses_csv",
]
