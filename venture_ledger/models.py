"""Record types shared across the pipeline.

All records are frozen dataclasses. Amounts are :class:`~decimal.Decimal` so
that split legs sum exactly to their parent; ``to_dict`` renders them as
decimal strings, and the camelCase keys match the JSON snapshots written by
:mod:`venture_ledger.store`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Context, Decimal, getcontext
from typing import Any, Literal

from .errors import RowError
from .rules import Action, Condition, SplitAllocation, dump_model

UNCATEGORIZED = "Uncategorized"
UNASSIGNED = "unassigned"

type AuditStep = Literal["no_match", "matched_rule", "split_allocation"]


_CENT = Decimal("0.01")


def _wide_context(d: Decimal) -> Context:
    # Room for every integer digit plus cents, however large the amount.
    prec = max(getcontext().prec, d.adjusted() + 3, len(d.as_tuple().digits))
    return Context(prec=prec)


def quantize_cents(d: Decimal, rounding: str | None = None) -> Decimal:
    """Round ``d`` to two decimals without overflowing the context precision."""

    return d.quantize(_CENT, rounding=rounding, context=_wide_context(d))


def format_amount(d: Decimal) -> str:
    """Render an amount in plain notation with at least two decimals.

    Extra precision (e.g., from an uneven split) is kept rather than rounded.
    """

    q = quantize_cents(d)
    if q == d:
        return format(q, "f")
    return format(d.normalize(_wide_context(d)), "f")


# ---------------------------------------------------------------------------
# Normalized input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single normalized transaction.

    Attributes
    ----------
    id:
        Deterministic identifier derived from ``(source, date, description,
        row index)``.
    date:
        ISO calendar date (``YYYY-MM-DD``).
    description:
        Non-empty description text.
    amount:
        Signed amount; negative is an outflow, positive an inflow.
    source:
        Adapter identifier (``generic``, ``chase``, ``costco``).
    """

    id: str
    date: str
    description: str
    amount: Decimal
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": format_amount(self.amount),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            description=str(data["description"]),
            amount=Decimal(str(data["amount"])),
            source=str(data["source"]),
        )


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of a validating import: parsed rows plus per-row diagnostics."""

    transactions: tuple[Transaction, ...]
    errors: tuple[RowError, ...]
    total_rows: int

    @property
    def valid_count(self) -> int:
        return len(self.transactions)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "errors": [e.to_dict() for e in self.errors],
            "totalRows": self.total_rows,
            "validCount": self.valid_count,
            "errorCount": self.error_count,
        }


# ---------------------------------------------------------------------------
# Categorized output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """How a categorization was derived; created once, never rewritten."""

    step: AuditStep
    rule_id: str | None = None
    when: Condition | None = None
    then: Action | None = None
    allocation: SplitAllocation | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"step": self.step, "ruleId": self.rule_id}
        if self.when is not None:
            out["when"] = dump_model(self.when)
        if self.then is not None:
            out["then"] = dump_model(self.then)
        if self.allocation is not None:
            out["allocation"] = dump_model(self.allocation)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuditEntry:
        when = data.get("when")
        then = data.get("then")
        alloc = data.get("allocation")
        return cls(
            step=data["step"],
            rule_id=data.get("ruleId"),
            when=Condition.model_validate(when) if when is not None else None,
            then=Action.model_validate(then) if then is not None else None,
            allocation=SplitAllocation.model_validate(alloc) if alloc is not None else None,
        )


@dataclass(frozen=True, slots=True)
class Allocation:
    """Split metadata carried by every split-derived transaction."""

    percent: Decimal
    original_amount: Decimal
    split_index: int
    total_splits: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "percent": format(self.percent, "f"),
            "originalAmount": format_amount(self.original_amount),
            "splitIndex": self.split_index,
            "totalSplits": self.total_splits,
        }


@dataclass(frozen=True, slots=True)
class CategorizedTransaction:
    """A normalized transaction with its category, venture and audit trail.

    ``original_txn_id`` and ``allocation`` are set only on split legs; a
    non-split row never carries ``allocation``.
    """

    id: str
    date: str
    description: str
    amount: Decimal
    source: str
    category: str
    venture: str
    requires_receipt: bool
    note: str
    audit: tuple[AuditEntry, ...]
    original_txn_id: str | None = None
    allocation: Allocation | None = None

    @property
    def is_split(self) -> bool:
        return self.allocation is not None

    @property
    def is_uncategorized(self) -> bool:
        return self.category == UNCATEGORIZED

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": format_amount(self.amount),
            "source": self.source,
            "category": self.category,
            "venture": self.venture,
            "requiresReceipt": self.requires_receipt,
            "note": self.note,
            "audit": [a.to_dict() for a in self.audit],
        }
        if self.original_txn_id is not None:
            out["originalTxnId"] = self.original_txn_id
        if self.allocation is not None:
            out["allocation"] = self.allocation.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CategorizedTransaction:
        alloc = data.get("allocation")
        allocation = None
        if alloc is not None:
            allocation = Allocation(
                percent=Decimal(str(alloc["percent"])),
                original_amount=Decimal(str(alloc["originalAmount"])),
                split_index=int(alloc["splitIndex"]),
                total_splits=int(alloc["totalSplits"]),
            )
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            description=str(data["description"]),
            amount=Decimal(str(data["amount"])),
            source=str(data.get("source", "")),
            category=str(data.get("category", UNCATEGORIZED)),
            venture=str(data.get("venture", UNASSIGNED)),
            requires_receipt=bool(data.get("requiresReceipt", False)),
            note=str(data.get("note") or ""),
            audit=tuple(AuditEntry.from_dict(a) for a in data.get("audit", ())),
            original_txn_id=data.get("originalTxnId"),
            allocation=allocation,
        )


@dataclass(frozen=True, slots=True)
class Alert:
    """A transaction whose matched rule requires a receipt."""

    txn_id: str
    message: str
    rule_id: str
    type: Literal["missing_receipt"] = "missing_receipt"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "txnId": self.txn_id,
            "message": self.message,
            "ruleId": self.rule_id,
        }


@dataclass(frozen=True, slots=True)
class CategorizationResult:
    categorized: tuple[CategorizedTransaction, ...]
    alerts: tuple[Alert, ...]


# ---------------------------------------------------------------------------
# Aggregates (derived; never a source of truth)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MerchantTally:
    merchant: str
    count: int
    total: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"merchant": self.merchant, "count": self.count, "total": format_amount(self.total)}


def _sums_to_dict(sums: Mapping[str, Decimal]) -> dict[str, str]:
    return {k: format_amount(v) for k, v in sums.items()}


@dataclass(frozen=True, slots=True)
class Summary:
    total_transactions: int
    uncategorized_count: int
    by_venture: dict[str, Decimal] = field(default_factory=dict)
    by_category: dict[str, Decimal] = field(default_factory=dict)
    by_venture_category: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    top_uncategorized: tuple[MerchantTally, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "uncategorizedCount": self.uncategorized_count,
            "byVenture": _sums_to_dict(self.by_venture),
            "byCategory": _sums_to_dict(self.by_category),
            "byVentureCategory": {
                v: _sums_to_dict(cats) for v, cats in self.by_venture_category.items()
            },
            "topUncategorized": [m.to_dict() for m in self.top_uncategorized],
        }


@dataclass(frozen=True, slots=True)
class UncategorizedReport:
    uncategorized_count: int
    uncategorized: tuple[CategorizedTransaction, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "uncategorizedCount": self.uncategorized_count,
            "uncategorized": [t.to_dict() for t in self.uncategorized],
        }


@dataclass(frozen=True, slots=True)
class MonthlySummary:
    month: str
    total_amount: Decimal
    transaction_count: int
    by_category: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "totalAmount": format_amount(self.total_amount),
            "transactionCount": self.transaction_count,
            "byCategory": _sums_to_dict(self.by_category),
        }


@dataclass(frozen=True, slots=True)
class ExportResult:
    csv: str
    count: int


__all__ = [
    "UNASSIGNED",
    "UNCATEGORIZED",
    "Alert",
    "Allocation",
    "AuditEntry",
    "CategorizationResult",
    "CategorizedTransaction",
    "ExportResult",
    "ImportResult",
    "MerchantTally",
    "MonthlySummary",
    "Summary",
    "Transaction",
    "UncategorizedReport",
    "format_amount",
    "quantize_cents",
]
