"""JSON snapshot store used by the CLI.

The core never reads or writes these files; callers snapshot core outputs on
an explicit save. Layout under the output directory::

    <out_dir>/transactions.json
    <out_dir>/categorized.json
    <out_dir>/alerts.json

Writes go to a ``.tmp`` sibling first and are moved into place with
``os.replace``.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Callable, Iterable
from os import PathLike
from pathlib import Path
from typing import Any

from .models import Alert, CategorizedTransaction, Transaction

TRANSACTIONS_FILE = "transactions.json"
CATEGORIZED_FILE = "categorized.json"
ALERTS_FILE = "alerts.json"


def write_json(path: str | PathLike[str], obj: Any) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    try:
        tmp.write_text(json.dumps(obj, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        os.replace(tmp, p)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
    return p


def read_json(path: str | PathLike[str]) -> Any:
    """Read JSON from ``path`` with actionable error messages."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(
            f"File not found: {p}. Make sure to run the previous steps first."
        )
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc


def _expect_list(data: Any, path: Path) -> list[Any]:
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array in {path}")
    return data


def _load_records[T](path: Path, parse: Callable[[Any], T]) -> list[T]:
    items = _expect_list(read_json(path), path)
    try:
        return [parse(item) for item in items]
    except (KeyError, TypeError, ArithmeticError) as exc:
        raise ValueError(f"Malformed record in {path}: {exc!r}") from exc


def save_transactions(out_dir: str | PathLike[str], transactions: Iterable[Transaction]) -> Path:
    return write_json(Path(out_dir) / TRANSACTIONS_FILE, [t.to_dict() for t in transactions])


def load_transactions(out_dir: str | PathLike[str]) -> list[Transaction]:
    path = Path(out_dir) / TRANSACTIONS_FILE
    return _load_records(path, Transaction.from_dict)


def save_categorized(
    out_dir: str | PathLike[str], categorized: Iterable[CategorizedTransaction]
) -> Path:
    return write_json(Path(out_dir) / CATEGORIZED_FILE, [t.to_dict() for t in categorized])


def load_categorized(out_dir: str | PathLike[str]) -> list[CategorizedTransaction]:
    path = Path(out_dir) / CATEGORIZED_FILE
    return _load_records(path, CategorizedTransaction.from_dict)


def save_alerts(out_dir: str | PathLike[str], alerts: Iterable[Alert]) -> Path:
    return write_json(Path(out_dir) / ALERTS_FILE, [a.to_dict() for a in alerts])


__all__ = [
    "ALERTS_FILE",
    "CATEGORIZED_FILE",
    "TRANSACTIONS_FILE",
    "load_categorized",
    "load_transactions",
    "read_json",
    "save_alerts",
    "save_categorized",
    "save_transactions",
    "write_json",
]
