"""Adapter for Chase credit card CSV exports.

CSV header (as exported):
Transaction Date, Post Date, Description, Category, Type, Amount, Memo

Normalization rules:

- ``date``: ``Transaction Date``, falling back to ``Post Date`` then ``Date``
  when the preferred column is absent from the header.
- ``description``: ``Description``; a non-empty ``Memo`` is appended as
  ``"<description> [<memo>]"`` so identical rows always yield identical text.
- ``amount``: sign is forced by ``Type`` regardless of the raw sign. ``Sale``
  is negative, ``Return`` and ``Payment`` are positive; other types keep the
  exported sign.
- Chase's own ``Category`` column is ignored.
"""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal

from ...errors import RowError
from ...models import Transaction
from ..utils import (
    CsvTable,
    build_transaction,
    missing_headers_error,
    parse_amount_or_none,
    pick_column,
)

DATE_COLUMNS = ("Transaction Date", "Post Date", "Date")

_OUTFLOW_TYPES = {"sale"}
_INFLOW_TYPES = {"return", "payment"}


def _apply_type_sign(amount: Decimal | None, txn_type: str) -> Decimal | None:
    if amount is None:
        return None
    t = txn_type.strip().lower()
    if t in _OUTFLOW_TYPES:
        return -abs(amount)
    if t in _INFLOW_TYPES:
        return abs(amount)
    return amount


def _describe(description: str, memo: str) -> str:
    if description and memo:
        return f"{description} [{memo}]"
    return description


def to_transactions(table: CsvTable, *, source: str = "chase") -> Iterator[Transaction | RowError]:
    date_col = pick_column(table.headers, DATE_COLUMNS)
    desc_col = pick_column(table.headers, ("Description",))
    amt_col = pick_column(table.headers, ("Amount",))
    type_col = pick_column(table.headers, ("Type",))
    memo_col = pick_column(table.headers, ("Memo",))
    if not date_col or not desc_col or not amt_col:
        raise missing_headers_error(
            "Chase", table.headers, ("Transaction Date", "Description", "Amount")
        )

    for row in table.rows:
        raw_amount = row.get(amt_col)
        amount = _apply_type_sign(parse_amount_or_none(raw_amount), row.get(type_col))
        yield build_transaction(
            row,
            source=source,
            raw_date=row.get(date_col),
            description=_describe(row.get(desc_col), row.get(memo_col)),
            amount=amount,
            raw_amount=raw_amount,
        )


__all__ = ["to_transactions"]
