"""Helpers shared by the CSV source adapters.

Parsing follows RFC 4180 rules via the stdlib :mod:`csv` module (UTF-8,
quoted fields with embedded delimiters and newlines, doubled quotes). The
helpers here locate the header row, resolve logical columns through
prioritized alias lists, normalize amounts and dates, and build
:class:`~venture_ledger.models.Transaction` records with deterministic ids.
"""

from __future__ import annotations

import csv
import hashlib
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from io import StringIO

from ..errors import FormatError, RowError
from ..models import Transaction

# ---------------------------------------------------------------------------
# CSV loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CsvRow:
    """A data row keyed by stripped header name.

    ``index`` is the 1-based position among non-blank data rows; it feeds the
    transaction id. ``line`` is the physical line in the source text where the
    record starts, used for diagnostics.
    """

    index: int
    line: int
    values: dict[str, str]

    def get(self, column: str | None) -> str:
        if column is None:
            return ""
        return self.values.get(column, "")


@dataclass(frozen=True, slots=True)
class CsvTable:
    headers: tuple[str, ...]
    rows: tuple[CsvRow, ...]


def _is_blank(cells: Sequence[str]) -> bool:
    return all(not c.strip() for c in cells)


def read_csv_table(csv_text: str) -> CsvTable:
    """Parse ``csv_text`` into a header tuple and keyed data rows.

    The first non-blank row is the header. Extra cells beyond the header are
    dropped; missing trailing cells read as ``""``. Raises
    :class:`~venture_ledger.errors.FormatError` when the input holds no header
    or is not parseable as CSV.
    """

    if not csv_text or not csv_text.strip():
        raise FormatError("CSV input is empty; a header row is required.")

    with StringIO(csv_text.lstrip("\ufeff")) as f:
        reader = csv.reader(f)
        headers: tuple[str, ...] | None = None
        rows: list[CsvRow] = []
        prev_line = 0
        try:
            for cells in reader:
                start, prev_line = prev_line + 1, reader.line_num
                if _is_blank(cells):
                    continue
                if headers is None:
                    headers = tuple(c.strip() for c in cells)
                    continue
                values = {
                    h: (cells[i].strip() if i < len(cells) else "")
                    for i, h in enumerate(headers)
                }
                rows.append(CsvRow(index=len(rows) + 1, line=start, values=values))
        except csv.Error as exc:
            raise FormatError(f"CSV input could not be parsed: {exc}") from exc

    if headers is None:
        raise FormatError("CSV input is empty; a header row is required.")
    return CsvTable(headers=headers, rows=tuple(rows))


def pick_column(headers: Sequence[str], candidates: Sequence[str]) -> str | None:
    """Return the first candidate present in ``headers`` (priority order)."""

    present = set(headers)
    for c in candidates:
        if c in present:
            return c
    return None


def missing_headers_error(
    label: str, headers: Sequence[str], expected: Sequence[str]
) -> FormatError:
    return FormatError(
        f"{label} CSV: Missing required headers. "
        f"Found: {', '.join(headers) or '<none>'}. Expected: {', '.join(expected)}",
        found=headers,
        expected=expected,
    )


# ---------------------------------------------------------------------------
# Field normalization
# ---------------------------------------------------------------------------


def to_decimal(raw: str | None) -> Decimal:
    """Parse a money string into a finite :class:`Decimal`.

    Accepts a leading sign, a ``$`` symbol, thousands separators and
    accounting parentheses in any order (``"-($1,234.56)"``). Raises
    ``ValueError`` for empty, malformed or non-finite input.
    """

    if raw is None:
        raise ValueError("amount is required")
    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")
    negative = False

    # Strip leading sign, currency symbol and surrounding parentheses until stable.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").strip()
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"non-finite amount: {raw!r}")
    return -abs(d) if negative else d


_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def normalize_date(raw: str | None) -> str | None:
    """Return ``YYYY-MM-DD`` for ISO or ``M/D/YYYY`` input, else ``None``."""

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    m = _ISO_DATE_RE.match(s)
    if m:
        year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _US_DATE_RE.match(s)
        if not m:
            return None
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def description_digest(description: str) -> str:
    return hashlib.sha256(description.encode("utf-8")).hexdigest()[:12]


def make_transaction_id(*, source: str, date_iso: str, description: str, index: int) -> str:
    """Deterministic id from ``(source, date, description, row index)``."""

    return f"{source}:{date_iso}:{description_digest(description)}:{index}"


def build_transaction(
    row: CsvRow,
    *,
    source: str,
    raw_date: str,
    description: str,
    amount: Decimal | None,
    raw_amount: str,
) -> Transaction | RowError:
    """Validate the extracted fields and return a transaction or a row error.

    ``amount`` is ``None`` when the adapter could not parse it; the raw text
    is echoed back in the resulting :class:`RowError`.
    """

    date_iso = normalize_date(raw_date)
    if date_iso is None:
        return RowError(row=row.line, field="date", message="Invalid date", value=raw_date)
    if not description:
        return RowError(row=row.line, field="description", message="Empty description")
    if amount is None:
        return RowError(row=row.line, field="amount", message="Invalid amount", value=raw_amount)
    return Transaction(
        id=make_transaction_id(
            source=source, date_iso=date_iso, description=description, index=row.index
        ),
        date=date_iso,
        description=description,
        amount=amount,
        source=source,
    )


def parse_amount_or_none(raw: str) -> Decimal | None:
    try:
        return to_decimal(raw)
    except ValueError:
        return None


__all__ = [
    "CsvRow",
    "CsvTable",
    "build_transaction",
    "make_transaction_id",
    "missing_headers_error",
    "normalize_date",
    "parse_amount_or_none",
    "pick_column",
    "read_csv_table",
    "to_decimal",
]
