"""Apply a rules document to normalized transactions.

Public API:
    - :func:`categorize_transactions`

Every input transaction yields either one categorized row or, for a split
action, one row per allocation placed contiguously where the parent would
have been. Receipt alerts are emitted once per input transaction, never per
split leg.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .logging_setup import get_logger
from .matching import make_selector
from .models import (
    UNASSIGNED,
    UNCATEGORIZED,
    Alert,
    Allocation,
    AuditEntry,
    CategorizationResult,
    CategorizedTransaction,
    Transaction,
)
from .rules import Rule, RulesDocument

_HUNDRED = Decimal("100")

_logger = get_logger("venture_ledger.categorize")


def _uncategorized(txn: Transaction) -> CategorizedTransaction:
    return CategorizedTransaction(
        id=txn.id,
        date=txn.date,
        description=txn.description,
        amount=txn.amount,
        source=txn.source,
        category=UNCATEGORIZED,
        venture=UNASSIGNED,
        requires_receipt=False,
        note="",
        audit=(AuditEntry(step="no_match"),),
    )


def _assigned(txn: Transaction, rule: Rule) -> CategorizedTransaction:
    action = rule.then
    return CategorizedTransaction(
        id=txn.id,
        date=txn.date,
        description=txn.description,
        amount=txn.amount,
        source=txn.source,
        category=action.category or UNCATEGORIZED,
        venture=action.venture or UNASSIGNED,
        requires_receipt=action.requires_receipt,
        note=action.note or "",
        audit=(AuditEntry(step="matched_rule", rule_id=rule.id, when=rule.when, then=action),),
    )


def _split_legs(txn: Transaction, rule: Rule) -> list[CategorizedTransaction]:
    action = rule.then
    split = action.split or ()
    legs: list[CategorizedTransaction] = []
    for i, allocation in enumerate(split):
        percent = Decimal(str(allocation.percent))
        legs.append(
            CategorizedTransaction(
                id=f"{txn.id}:split:{i}",
                date=txn.date,
                description=txn.description,
                # Each leg is computed from the parent directly, never from a rounded sibling.
                amount=txn.amount * percent / _HUNDRED,
                source=txn.source,
                category=action.category or UNCATEGORIZED,
                venture=allocation.venture,
                requires_receipt=action.requires_receipt,
                note=allocation.note or "",
                audit=(
                    AuditEntry(
                        step="split_allocation",
                        rule_id=rule.id,
                        when=rule.when,
                        then=action,
                        allocation=allocation,
                    ),
                ),
                original_txn_id=txn.id,
                allocation=Allocation(
                    percent=percent,
                    original_amount=txn.amount,
                    split_index=i,
                    total_splits=len(split),
                ),
            )
        )
    return legs


def _receipt_alert(txn: Transaction, rule: Rule) -> Alert:
    message = f"Receipt required for {txn.description} ({txn.amount})"
    if rule.then.split is not None:
        message += f" - split across {len(rule.then.split)} ventures"
    return Alert(txn_id=txn.id, message=message, rule_id=rule.id)


def categorize_transactions(
    transactions: Iterable[Transaction], doc: RulesDocument
) -> CategorizationResult:
    """Categorize ``transactions`` against ``doc``.

    The document must already have passed
    :func:`~venture_ledger.rules.load_rules_document`. Output order follows
    input order. Calling this twice with the same inputs yields equal results.

    Raises
    ------
    MatchError
        When a rule's condition is malformed (e.g., non-numeric
        ``amount_between`` bounds).
    """

    select = make_selector(doc)
    categorized: list[CategorizedTransaction] = []
    alerts: list[Alert] = []
    n_input = 0

    for txn in transactions:
        n_input += 1
        rule = select(txn)
        if rule is None:
            categorized.append(_uncategorized(txn))
            continue

        if rule.then.split is not None:
            categorized.extend(_split_legs(txn, rule))
        else:
            categorized.append(_assigned(txn, rule))

        if rule.then.requires_receipt:
            alerts.append(_receipt_alert(txn, rule))

    _logger.info(
        "categorized %d transactions into %d rows (%d alerts)",
        n_input,
        len(categorized),
        len(alerts),
    )
    return CategorizationResult(categorized=tuple(categorized), alerts=tuple(alerts))


__all__ = ["categorize_transactions"]
