"""CSV → Transaction normalizers for generic, Chase and Costco exports.

Two modes are offered over the same adapters:

- :func:`normalize` (best-effort): malformed rows are skipped and logged at
  DEBUG; file-level problems raise :class:`~venture_ledger.errors.FormatError`.
- :func:`validate_and_normalize` (validating): never raises; malformed rows
  are returned as :class:`~venture_ledger.errors.RowError` records next to the
  parsed transactions, and a file-level failure becomes a single row-0 error.

Re-normalizing identical text always yields identical transaction ids.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from os import PathLike
from pathlib import Path

from .errors import FormatError, RowError
from .ingest.adapters import chase_csv, costco_csv, generic_csv
from .ingest.utils import CsvTable, read_csv_table
from .logging_setup import get_logger
from .models import ImportResult, Transaction

type Adapter = Callable[..., Iterator[Transaction | RowError]]

ADAPTERS: dict[str, Adapter] = {
    "generic": generic_csv.to_transactions,
    "chase": chase_csv.to_transactions,
    "costco": costco_csv.to_transactions,
}

_logger = get_logger("venture_ledger.normalizers")


def available_sources() -> tuple[str, ...]:
    return tuple(ADAPTERS)


def _resolve_adapter(source: str) -> tuple[str, Adapter]:
    key = source.strip().lower()
    adapter = ADAPTERS.get(key)
    if adapter is None:
        available = ", ".join(ADAPTERS)
        raise FormatError(
            f"Unknown source: {source!r}. Available sources: {available}",
            expected=tuple(ADAPTERS),
        )
    return key, adapter


def _run_adapter(csv_text: str, source: str) -> tuple[CsvTable, list[Transaction | RowError]]:
    key, adapter = _resolve_adapter(source)
    table = read_csv_table(csv_text)
    return table, list(adapter(table, source=key))


def normalize(csv_text: str, source: str = "generic") -> list[Transaction]:
    """Normalize ``csv_text`` from ``source`` into transactions (best-effort).

    Raises
    ------
    FormatError
        When the input is empty or not parseable as CSV, the source is
        unknown, or required columns cannot be located.
    """

    _table, outcomes = _run_adapter(csv_text, source)
    transactions: list[Transaction] = []
    for item in outcomes:
        if isinstance(item, RowError):
            _logger.debug("%s: skipping row %d: %s", source, item.row, item.message)
            continue
        transactions.append(item)
    _logger.info("normalized %d %s transactions", len(transactions), source)
    return transactions


def validate_and_normalize(csv_text: str, source: str = "generic") -> ImportResult:
    """Normalize ``csv_text`` and report every malformed row individually."""

    try:
        table, outcomes = _run_adapter(csv_text, source)
    except FormatError as exc:
        return ImportResult(
            transactions=(),
            errors=(RowError(row=0, message=str(exc)),),
            total_rows=0,
        )

    transactions = tuple(t for t in outcomes if isinstance(t, Transaction))
    errors = tuple(e for e in outcomes if isinstance(e, RowError))
    if errors:
        _logger.info("%s: %d row(s) failed validation", source, len(errors))
    return ImportResult(transactions=transactions, errors=errors, total_rows=len(table.rows))


def normalize_file(path: str | PathLike[str], source: str = "generic") -> list[Transaction]:
    """Read a UTF-8 CSV file and normalize it with :func:`normalize`."""

    text = Path(path).read_text(encoding="utf-8")
    return normalize(text, source)


__all__ = [
    "ADAPTERS",
    "available_sources",
    "normalize",
    "normalize_file",
    "validate_and_normalize",
]
