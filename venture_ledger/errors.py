"""Error taxonomy for ``venture_ledger``.

``FormatError``, ``ValidationError`` and ``MatchError`` are fatal to the
operation that raised them. Row-level problems found while importing are not
exceptions; they are collected as :class:`RowError` records so the caller can
proceed with partial data.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


class VentureLedgerError(Exception):
    """Base class for all errors raised by the package."""


class FormatError(VentureLedgerError, ValueError):
    """Source text cannot be parsed (empty input, missing required headers)."""

    def __init__(
        self,
        message: str,
        *,
        found: Sequence[str] = (),
        expected: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.found: tuple[str, ...] = tuple(found)
        self.expected: tuple[str, ...] = tuple(expected)


class ValidationError(VentureLedgerError, ValueError):
    """A rules document failed a structural or invariant check."""

    def __init__(self, message: str, *, rule_id: str | None = None) -> None:
        super().__init__(message)
        self.rule_id = rule_id


class MatchError(VentureLedgerError, ValueError):
    """A condition is malformed in a way only detectable while matching."""

    def __init__(self, message: str, *, rule_id: str | None = None) -> None:
        super().__init__(message)
        self.rule_id = rule_id


@dataclass(frozen=True, slots=True)
class RowError:
    """A single input row that failed field-level validation.

    ``row`` is 1-based and counts the header as row 1, so the first data row
    is row 2. ``row == 0`` marks a file-level failure.
    """

    row: int
    message: str
    field: str | None = None
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"row": self.row, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.value is not None:
            out["value"] = self.value
        return out


__all__ = [
    "FormatError",
    "MatchError",
    "RowError",
    "ValidationError",
    "VentureLedgerError",
]
