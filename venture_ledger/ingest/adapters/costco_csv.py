"""Adapter for Costco Anywhere Visa (Citi) CSV exports.

CSV header (as exported):
Status, Date, Description, Debit, Credit, Member Name

Normalization rules:

- ``amount = credit - debit``; an empty cell counts as zero. Exports without
  ``Debit``/``Credit`` columns fall back to a signed ``Amount`` column.
- Rows whose ``Status`` is ``pending`` are dropped, as are rows whose amount
  nets to zero. Neither counts as a row error.
"""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal

from ...errors import RowError
from ...logging_setup import get_logger
from ...models import Transaction
from ..utils import (
    CsvRow,
    CsvTable,
    build_transaction,
    missing_headers_error,
    parse_amount_or_none,
    pick_column,
)

DATE_COLUMNS = ("Date", "Transaction Date", "Posted Date")
DESCRIPTION_COLUMNS = ("Description", "Merchant")

_logger = get_logger("venture_ledger.ingest.costco")


def _cell_amount(row: CsvRow, column: str | None) -> Decimal | None:
    raw = row.get(column)
    if not raw:
        return Decimal("0")
    return parse_amount_or_none(raw)


def to_transactions(table: CsvTable, *, source: str = "costco") -> Iterator[Transaction | RowError]:
    date_col = pick_column(table.headers, DATE_COLUMNS)
    desc_col = pick_column(table.headers, DESCRIPTION_COLUMNS)
    debit_col = pick_column(table.headers, ("Debit",))
    credit_col = pick_column(table.headers, ("Credit",))
    status_col = pick_column(table.headers, ("Status",))
    amt_col = None if (debit_col or credit_col) else pick_column(table.headers, ("Amount",))
    if not date_col or not desc_col or not (debit_col or credit_col or amt_col):
        raise missing_headers_error(
            "Costco", table.headers, ("Date", "Description", "Debit/Credit or Amount")
        )

    for row in table.rows:
        if status_col and row.get(status_col).lower() == "pending":
            _logger.debug("costco: skipping pending row %d", row.line)
            continue

        amount: Decimal | None
        if amt_col:
            raw_amount = row.get(amt_col)
            amount = parse_amount_or_none(raw_amount)
        else:
            raw_amount = f"debit={row.get(debit_col)!s} credit={row.get(credit_col)!s}"
            debit = _cell_amount(row, debit_col)
            credit = _cell_amount(row, credit_col)
            amount = None if debit is None or credit is None else credit - debit

        if amount is not None and amount == 0:
            _logger.debug("costco: skipping zero-amount row %d", row.line)
            continue

        yield build_transaction(
            row,
            source=source,
            raw_date=row.get(date_col),
            description=row.get(desc_col),
            amount=amount,
            raw_amount=raw_amount,
        )


__all__ = ["to_transactions"]
