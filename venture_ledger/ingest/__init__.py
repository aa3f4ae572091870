"""CSV ingestion: table loading, field normalization and source adapters."""

from .utils import CsvRow, CsvTable, make_transaction_id, normalize_date, read_csv_table, to_decimal

__all__ = [
    "CsvRow",
    "CsvTable",
    "make_transaction_id",
    "normalize_date",
    "read_csv_table",
    "to_decimal",
]
