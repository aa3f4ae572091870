"""Adapter for generic bank CSV exports with a single signed amount column.

Column aliases (first present wins):

- date: ``Date``, ``Transaction Date``, ``Posting Date``
- description: ``Description``, ``Merchant``, ``Transaction Description``
- amount: ``Amount``, ``Debit``, ``Charge``, ``Transaction Amount``

The amount is taken as-is: negative values are outflows.
"""

from __future__ import annotations

from collections.abc import Iterator

from ...errors import RowError
from ...models import Transaction
from ..utils import (
    CsvTable,
    build_transaction,
    missing_headers_error,
    parse_amount_or_none,
    pick_column,
)

DATE_COLUMNS = ("Date", "Transaction Date", "Posting Date")
DESCRIPTION_COLUMNS = ("Description", "Merchant", "Transaction Description")
AMOUNT_COLUMNS = ("Amount", "Debit", "Charge", "Transaction Amount")


def to_transactions(table: CsvTable, *, source: str = "generic") -> Iterator[Transaction | RowError]:
    date_col = pick_column(table.headers, DATE_COLUMNS)
    desc_col = pick_column(table.headers, DESCRIPTION_COLUMNS)
    amt_col = pick_column(table.headers, AMOUNT_COLUMNS)
    if not date_col or not desc_col or not amt_col:
        raise missing_headers_error("Generic", table.headers, ("Date", "Description", "Amount"))

    for row in table.rows:
        raw_amount = row.get(amt_col)
        yield build_transaction(
            row,
            source=source,
            raw_date=row.get(date_col),
            description=row.get(desc_col),
            amount=parse_amount_or_none(raw_amount),
            raw_amount=raw_amount,
        )


__all__ = ["to_transactions"]
