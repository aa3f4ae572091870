"""Pure reducers over categorized transactions.

Summaries are derived data: they are recomputed from the categorized rows
whenever needed and never stored as a source of truth. Split legs count as
individual transactions.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from .models import (
    CategorizedTransaction,
    MerchantTally,
    MonthlySummary,
    Summary,
    UncategorizedReport,
)

TOP_UNCATEGORIZED_LIMIT = 10


def generate_alerts(categorized: Iterable[CategorizedTransaction]) -> UncategorizedReport:
    """Collect the rows that no rule categorized."""

    uncategorized = tuple(t for t in categorized if t.is_uncategorized)
    return UncategorizedReport(uncategorized_count=len(uncategorized), uncategorized=uncategorized)


def _top_uncategorized(rows: Iterable[CategorizedTransaction], limit: int) -> tuple[MerchantTally, ...]:
    # dicts keep first-seen order, and ``sorted`` is stable, so ties stay in that order.
    counts: dict[str, int] = {}
    totals: dict[str, Decimal] = {}
    for t in rows:
        counts[t.description] = counts.get(t.description, 0) + 1
        totals[t.description] = totals.get(t.description, Decimal("0")) + t.amount
    ranked = sorted(counts, key=lambda merchant: -counts[merchant])
    return tuple(
        MerchantTally(merchant=m, count=counts[m], total=totals[m]) for m in ranked[:limit]
    )


def generate_summary(
    categorized: Iterable[CategorizedTransaction],
    *,
    top_limit: int = TOP_UNCATEGORIZED_LIMIT,
) -> Summary:
    """Totals by venture, category and venture×category plus uncategorized stats."""

    rows = list(categorized)
    by_venture: dict[str, Decimal] = defaultdict(Decimal)
    by_category: dict[str, Decimal] = defaultdict(Decimal)
    by_venture_category: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))

    for t in rows:
        by_venture[t.venture] += t.amount
        by_category[t.category] += t.amount
        by_venture_category[t.venture][t.category] += t.amount

    uncategorized = [t for t in rows if t.is_uncategorized]
    return Summary(
        total_transactions=len(rows),
        uncategorized_count=len(uncategorized),
        by_venture=dict(by_venture),
        by_category=dict(by_category),
        by_venture_category={v: dict(c) for v, c in by_venture_category.items()},
        top_uncategorized=_top_uncategorized(uncategorized, top_limit),
    )


def generate_monthly_summary(
    categorized: Iterable[CategorizedTransaction],
) -> list[MonthlySummary]:
    """Group rows by ``YYYY-MM``, newest month first."""

    totals: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)
    by_category: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
    for t in categorized:
        month = t.date[:7]
        totals[month] += t.amount
        counts[month] += 1
        by_category[month][t.category] += t.amount

    return [
        MonthlySummary(
            month=month,
            total_amount=totals[month],
            transaction_count=counts[month],
            by_category=dict(by_category[month]),
        )
        for month in sorted(totals, reverse=True)
    ]


__all__ = [
    "TOP_UNCATEGORIZED_LIMIT",
    "generate_alerts",
    "generate_monthly_summary",
    "generate_summary",
]
