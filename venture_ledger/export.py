"""Schedule C style CSV export and plain-text report rendering.

The export has fixed columns; the last three are filled only for split legs::

    Date, Description, Amount, Category, Venture, Note,
    OriginalTxnId, SplitPercent, OriginalAmount

Quoting follows RFC 4180 via :mod:`csv` (``QUOTE_MINIMAL``): any field that
contains the delimiter, a quote or a newline is quoted with embedded quotes
doubled.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from os import PathLike
from pathlib import Path

from .models import CategorizedTransaction, ExportResult, Summary, format_amount, quantize_cents

EXPORT_COLUMNS: tuple[str, ...] = (
    "Date",
    "Description",
    "Amount",
    "Category",
    "Venture",
    "Note",
    "OriginalTxnId",
    "SplitPercent",
    "OriginalAmount",
)


def _export_row(t: CategorizedTransaction) -> list[str]:
    split_cols = ["", "", ""]
    if t.allocation is not None:
        split_cols = [
            t.original_txn_id or "",
            format(t.allocation.percent, "f"),
            format_amount(t.allocation.original_amount),
        ]
    return [
        t.date,
        t.description,
        format_amount(t.amount),
        t.category,
        t.venture,
        t.note,
        *split_cols,
    ]


def export_schedule_c(
    categorized: Iterable[CategorizedTransaction],
    *,
    venture: str,
    year: int | str,
) -> ExportResult:
    """Render the rows of ``venture`` dated in ``year`` as CSV text."""

    prefix = f"{str(year).strip()}-"
    rows = [t for t in categorized if t.venture == venture and t.date.startswith(prefix)]

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for t in rows:
        writer.writerow(_export_row(t))
    return ExportResult(csv=buf.getvalue(), count=len(rows))


def write_export(result: ExportResult, path: str | PathLike[str]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(result.csv, encoding="utf-8", newline="")
    return p


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------

_LABEL_WIDTH = 32
_AMOUNT_WIDTH = 14


def format_money(d: Decimal) -> str:
    """Signed amount with exactly two decimals and thousands separators."""

    return format(quantize_cents(d, ROUND_HALF_UP), ",f")


def _clip(label: str, width: int = _LABEL_WIDTH) -> str:
    return label if len(label) <= width else label[: width - 1] + "…"


def _section(title: str, sums: Mapping[str, Decimal]) -> list[str]:
    lines = ["", title, "-" * len(title)]
    if not sums:
        lines.append("  (none)")
        return lines
    for name, total in sorted(sums.items(), key=lambda kv: kv[1]):
        lines.append(f"  {_clip(name):<{_LABEL_WIDTH}} {format_money(total):>{_AMOUNT_WIDTH}}")
    return lines


def format_summary_report(summary: Summary) -> str:
    """Render a fixed-width, human-readable summary report.

    Category and venture sections are ordered from the largest outflow to the
    largest inflow.
    """

    categorized = summary.total_transactions - summary.uncategorized_count
    lines = [
        "Categorization summary",
        "======================",
        f"  {'Total transactions':<{_LABEL_WIDTH}} {summary.total_transactions:>{_AMOUNT_WIDTH}}",
        f"  {'Categorized':<{_LABEL_WIDTH}} {categorized:>{_AMOUNT_WIDTH}}",
        f"  {'Uncategorized':<{_LABEL_WIDTH}} {summary.uncategorized_count:>{_AMOUNT_WIDTH}}",
    ]
    lines += _section("By category", summary.by_category)
    lines += _section("By venture", summary.by_venture)

    if summary.top_uncategorized:
        title = "Top uncategorized merchants"
        lines += ["", title, "-" * len(title)]
        lines.append(f"  {'Merchant':<{_LABEL_WIDTH}} {'Count':>6} {'Total':>{_AMOUNT_WIDTH}}")
        for tally in summary.top_uncategorized:
            lines.append(
                f"  {_clip(tally.merchant):<{_LABEL_WIDTH}} {tally.count:>6} "
                f"{format_money(tally.total):>{_AMOUNT_WIDTH}}"
            )
    return "\n".join(lines)


__all__ = [
    "EXPORT_COLUMNS",
    "export_schedule_c",
    "format_money",
    "format_summary_report",
    "write_export",
]
