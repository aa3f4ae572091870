"""Condition matching and rule selection.

A :class:`~venture_ledger.rules.Condition` is a conjunction of optional
clauses. Each clause present is checked by a dedicated predicate and all must
pass; an empty condition matches every transaction.

Rule selection is "first match wins": rules are stably sorted by ``priority``
descending, so declaration order decides between equal priorities, and the
first rule whose condition matches is returned.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from decimal import Decimal
from functools import lru_cache
from typing import Any

from .errors import MatchError
from .logging_setup import get_logger
from .models import Transaction
from .rules import Condition, RegexSpec, Rule, RulesDocument

_logger = get_logger("venture_ledger.matching")

# ``g``, ``u`` and ``y`` have no Python counterpart and are accepted as no-ops.
_REGEX_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
_IGNORED_FLAGS = frozenset("guy")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _contains_any(description: str, keywords: Sequence[str] | None) -> bool:
    if not keywords:
        return True
    return any(k.lower() in description for k in keywords)


def _contains_all(description: str, keywords: Sequence[str] | None) -> bool:
    if not keywords:
        return True
    return all(k.lower() in description for k in keywords)


@lru_cache(maxsize=512)
def _compile(pattern: str, flags: str | None) -> re.Pattern[str] | None:
    if flags is None:
        compiled_flags = re.IGNORECASE
    else:
        compiled_flags = re.NOFLAG
        for ch in flags:
            if ch in _REGEX_FLAGS:
                compiled_flags |= _REGEX_FLAGS[ch]
            elif ch not in _IGNORED_FLAGS:
                _logger.warning("Ignoring invalid regex pattern %r: unknown flag %r", pattern, ch)
                return None
    try:
        return re.compile(pattern, compiled_flags)
    except re.error as exc:
        _logger.warning("Ignoring invalid regex pattern %r: %s", pattern, exc)
        return None


def _regex_matches(description: str, regex: str | RegexSpec | None) -> bool:
    if regex is None:
        return True
    if isinstance(regex, RegexSpec):
        compiled = _compile(regex.pattern, regex.flags)
    else:
        compiled = _compile(regex, None)
    if compiled is None:
        return False
    return compiled.search(description) is not None


def _as_decimal(value: int | float) -> Decimal:
    return Decimal(str(value))


def _amount_gt(amount: Decimal, bound: int | float | None) -> bool:
    return bound is None or amount > _as_decimal(bound)


def _amount_lt(amount: Decimal, bound: int | float | None) -> bool:
    return bound is None or amount < _as_decimal(bound)


def _bound(range_: Mapping[str, Any], key: str) -> Decimal:
    value = range_.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MatchError(f"amount_between.{key} must be a number (got {value!r})")
    return _as_decimal(value)


def _amount_between(amount: Decimal, range_: Mapping[str, Any] | None) -> bool:
    if range_ is None:
        return True
    low = _bound(range_, "min")
    high = _bound(range_, "max")
    return low <= amount <= high


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def matches(transaction: Transaction, condition: Condition) -> bool:
    """Return whether ``transaction`` satisfies every clause in ``condition``.

    Keyword and regex clauses test the lower-cased description; amount
    clauses test the signed amount as-is. Both ``contains`` and its alias
    ``any_contains`` are applied when both are present.

    Raises
    ------
    MatchError
        When ``amount_between`` has missing or non-numeric bounds.
    """

    description = transaction.description.lower()
    amount = transaction.amount
    return (
        _contains_any(description, condition.any_contains)
        and _contains_any(description, condition.contains)
        and _contains_all(description, condition.all_contains)
        and _regex_matches(description, condition.regex)
        and _amount_gt(amount, condition.amount_gt)
        and _amount_lt(amount, condition.amount_lt)
        and _amount_between(amount, condition.amount_between)
    )


def rank_rules(rules: Iterable[Rule]) -> tuple[Rule, ...]:
    """Order rules by priority, highest first, keeping declaration order on ties."""

    # ``sorted`` is stable, so equal priorities keep their document order.
    return tuple(sorted(rules, key=lambda r: -r.priority))


def first_match(transaction: Transaction, ranked: Sequence[Rule]) -> Rule | None:
    """Scan already-ranked rules and return the first whose condition matches."""

    for rule in ranked:
        try:
            hit = matches(transaction, rule.when)
        except MatchError as exc:
            raise MatchError(f"Rule {rule.id}: {exc}", rule_id=rule.id) from exc
        if hit:
            return rule
    return None


def select_rule(transaction: Transaction, doc: RulesDocument) -> Rule | None:
    """Return the winning rule for ``transaction`` or ``None`` if none match."""

    return first_match(transaction, rank_rules(doc.rules))


type Selector = Callable[[Transaction], Rule | None]


def make_selector(doc: RulesDocument) -> Selector:
    """Rank ``doc`` once and return a reusable per-transaction selector."""

    ranked = rank_rules(doc.rules)
    return lambda transaction: first_match(transaction, ranked)


__all__ = ["first_match", "make_selector", "matches", "rank_rules", "select_rule"]
