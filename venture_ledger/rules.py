"""Rules document models and validation.

A rules document is usually loaded from JSON::

    {
      "ventures": ["dream-vacations", "youman-house"],
      "rules": [
        {
          "id": "openai",
          "priority": 10,
          "when": {"contains": ["OPENAI", "CHATGPT"]},
          "then": {"category": "Software", "venture": "youman-house",
                   "requiresReceipt": false, "note": "AI tools"}
        }
      ]
    }

:func:`validate_rules_document` performs the structural checks plus the
split-percentage invariant over the raw mapping and fails fast on the first
violation. :func:`load_rules_document` validates and then parses into the
frozen pydantic models used by the matcher and categorizer.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

SPLIT_TOTAL = Decimal("100")
SPLIT_TOLERANCE = Decimal("0.01")

# JSON numbers only; numeric-looking strings and booleans are rejected.
Number = StrictInt | StrictFloat


# ---------------------------------------------------------------------------
# Typed document models
# ---------------------------------------------------------------------------


class RegexSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: StrictStr
    flags: StrictStr | None = None


class Condition(BaseModel):
    """Conjunction of optional predicate clauses; absent clauses are skipped.

    Unknown clause names are rejected.

    ``amount_between`` is kept as an unconverted mapping so that malformed
    bounds surface as a :class:`~venture_ledger.errors.MatchError` when the
    clause is evaluated instead of being coerced here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    contains: tuple[StrictStr, ...] | None = None
    any_contains: tuple[StrictStr, ...] | None = None
    all_contains: tuple[StrictStr, ...] | None = None
    regex: StrictStr | RegexSpec | None = None
    amount_gt: Number | None = None
    amount_lt: Number | None = None
    amount_between: dict[str, Any] | None = None


class SplitAllocation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    venture: StrictStr = Field(min_length=1)
    percent: Number
    note: StrictStr | None = None


class Action(BaseModel):
    """Either a simple assignment or a ``split`` across ventures."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    category: StrictStr | None = None
    venture: StrictStr | None = None
    requires_receipt: StrictBool = Field(default=False, alias="requiresReceipt")
    note: StrictStr | None = None
    split: tuple[SplitAllocation, ...] | None = None

    @property
    def is_split(self) -> bool:
        return self.split is not None


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: StrictStr = Field(min_length=1)
    priority: StrictInt = 0
    when: Condition
    then: Action


class RulesDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    ventures: tuple[StrictStr, ...] | None = None
    rules: tuple[Rule, ...]


def dump_model(model: BaseModel) -> dict[str, Any]:
    """Serialize a document model back to the shape it was written in."""

    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _validate_split(rule_id: str, split: Any) -> None:
    if not isinstance(split, list):
        raise ValidationError(f"Rule {rule_id} split must be a list.", rule_id=rule_id)

    total = Decimal("0")
    for j, allocation in enumerate(split):
        if not isinstance(allocation, Mapping):
            raise ValidationError(
                f"Rule {rule_id} split allocation {j} must be an object.", rule_id=rule_id
            )
        venture = allocation.get("venture")
        if not isinstance(venture, str) or not venture.strip():
            raise ValidationError(
                f"Rule {rule_id} split allocation {j} missing venture.", rule_id=rule_id
            )
        percent = allocation.get("percent")
        if not _is_number(percent) or not percent > 0:
            raise ValidationError(
                f"Rule {rule_id} split allocation {j} percent must be a positive number "
                f"(got {percent!r}).",
                rule_id=rule_id,
            )
        total += Decimal(str(percent))

    if abs(total - SPLIT_TOTAL) > SPLIT_TOLERANCE:
        raise ValidationError(
            f"Rule {rule_id} split percentages must sum to 100 (got {total}).",
            rule_id=rule_id,
        )


def validate_rules_document(doc: Any) -> None:
    """Validate a raw (JSON-decoded) rules document.

    Raises :class:`~venture_ledger.errors.ValidationError` on the first
    violation, naming the offending rule id where one is known. Conditions
    are never evaluated here.
    """

    if not isinstance(doc, Mapping):
        raise ValidationError("Rules document must be an object.")

    ventures = doc.get("ventures")
    if ventures is not None and (
        not isinstance(ventures, list) or not all(isinstance(v, str) for v in ventures)
    ):
        raise ValidationError("Rules document ventures must be a list of strings.")

    rules = doc.get("rules")
    if not isinstance(rules, list):
        raise ValidationError("Rules document must contain rules[].")

    seen: set[str] = set()
    for i, rule in enumerate(rules):
        if not isinstance(rule, Mapping):
            raise ValidationError(f"Rule at index {i} must be an object.")
        rule_id = rule.get("id")
        if not isinstance(rule_id, str) or not rule_id.strip():
            raise ValidationError(f"Rule at index {i} must have id.")
        if rule_id in seen:
            raise ValidationError(f"Duplicate rule id {rule_id!r}.", rule_id=rule_id)
        seen.add(rule_id)

        priority = rule.get("priority")
        if priority is not None and (not isinstance(priority, int) or isinstance(priority, bool)):
            raise ValidationError(f"Rule {rule_id} priority must be an integer.", rule_id=rule_id)

        when = rule.get("when")
        if not isinstance(when, Mapping):
            raise ValidationError(f"Rule {rule_id} missing when.", rule_id=rule_id)
        then = rule.get("then")
        if not isinstance(then, Mapping):
            raise ValidationError(f"Rule {rule_id} missing then.", rule_id=rule_id)

        if then.get("split") is not None:
            _validate_split(rule_id, then["split"])


def _rule_id_at(doc: Mapping[str, Any], loc: tuple[Any, ...]) -> str | None:
    if len(loc) >= 2 and loc[0] == "rules" and isinstance(loc[1], int):
        rule = doc["rules"][loc[1]]
        return str(rule.get("id"))
    return None


def load_rules_document(doc: Any) -> RulesDocument:
    """Validate ``doc`` and parse it into a :class:`RulesDocument`."""

    validate_rules_document(doc)
    try:
        return RulesDocument.model_validate(doc)
    except PydanticValidationError as exc:
        errors = exc.errors()
        # Unknown keys inside a union (e.g. a regex object) are listed after the
        # mismatch of the plain-string branch.
        first = next((e for e in errors if e.get("type") == "extra_forbidden"), errors[0])
        loc = tuple(first.get("loc", ()))
        rule_id = _rule_id_at(doc, loc)
        where = ".".join(str(p) for p in loc[2:]) if rule_id else ".".join(str(p) for p in loc)
        prefix = f"Rule {rule_id}" if rule_id else "Rules document"
        raise ValidationError(
            f"{prefix} is invalid at {where or '<root>'}: {first.get('msg')}",
            rule_id=rule_id,
        ) from exc


def load_rules_file(path: str | PathLike[str]) -> RulesDocument:
    """Read a JSON rules file from ``path`` and return the parsed document."""

    p = Path(path)
    text = p.read_text(encoding="utf-8")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON in {p}: {exc}") from exc
    return load_rules_document(raw)


__all__ = [
    "Action",
    "Condition",
    "RegexSpec",
    "Rule",
    "RulesDocument",
    "SplitAllocation",
    "dump_model",
    "load_rules_document",
    "load_rules_file",
    "validate_rules_document",
]
