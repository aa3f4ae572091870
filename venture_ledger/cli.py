# ruff: noqa: I001
"""CLI for the ``venture_ledger`` package.

Typer-based console interface mirroring the import → categorize → export flow.
Defaults for the output directory and the rules path are read from a local
``.env`` (via ``python-dotenv``) and the process environment; explicit options
always win. Business logic lives in the core modules; this module only does
file I/O and printing.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .logging_setup import configure_logging

if TYPE_CHECKING:
    from .models import CategorizedTransaction
    from .rules import RulesDocument

DATA_DIR_ENV = "VENTURE_LEDGER_DATA_DIR"
RULES_ENV = "VENTURE_LEDGER_RULES"
DEFAULT_DATA_DIR = "data"
DEFAULT_RULES_PATH = "rules/household.json"
REPORT_TYPES = ("summary", "alerts", "monthly")


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank/card CSVs, categorize them with an ordered rules file, and "
        "export per-venture Schedule C style CSVs. Loads settings from a local .env."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
OUT_DIR_OPTION: OptionInfo = typer.Option(
    None,
    "--out-dir",
    help=f"Output directory for JSON snapshots (default: ${DATA_DIR_ENV} or ./{DEFAULT_DATA_DIR}).",
    file_okay=False,
)
FILE_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--file",
    help="CSV file exported from a bank or card statement",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
SOURCE_OPTION: OptionInfo = typer.Option(
    "generic", "--source", help="Source type: generic, chase, costco."
)
RULES_OPTION: OptionInfo = typer.Option(
    None,
    "--rules",
    help=f"Rules JSON file (default: ${RULES_ENV} or {DEFAULT_RULES_PATH}).",
    dir_okay=False,
)


# ---- Small module-level helpers used by CLI commands -------------------------


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _resolve_out_dir(ctx: typer.Context, out_dir: Path | None) -> Path:
    """Command option, then the root ``--out-dir``, then env, then ``data``."""

    if out_dir is not None:
        return out_dir
    root = ctx.obj.get("out_dir") if isinstance(ctx.obj, dict) else None
    if root is not None:
        return root
    return Path(os.getenv(DATA_DIR_ENV) or DEFAULT_DATA_DIR)


def _resolve_rules(rules: Path | None) -> Path:
    if rules is not None:
        return rules
    return Path(os.getenv(RULES_ENV) or DEFAULT_RULES_PATH)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise _fail(f"File not found: {path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {path}") from None
    except UnicodeDecodeError as e:
        raise _fail(f"File is not valid UTF-8 text: {path} ({e})") from None


def _load_rules(path: Path) -> RulesDocument:
    from .errors import ValidationError
    from .rules import load_rules_file

    try:
        return load_rules_file(path)
    except FileNotFoundError:
        raise _fail(f"Rules file not found: {path}") from None
    except OSError as e:
        raise _fail(f"Failed to read rules file {path}: {e}") from None
    except ValidationError as e:
        raise _fail(f"Invalid rules file {path}: {e}") from None


# ---- Commands ----------------------------------------------------------------


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    file: Annotated[Path, FILE_OPTION],
    *,
    source: str = SOURCE_OPTION,
    validate: bool = typer.Option(
        False, "--validate", help="Report every malformed row instead of skipping silently."
    ),
    out_dir: Path | None = OUT_DIR_OPTION,
) -> None:
    """Normalize a CSV file and write ``transactions.json``."""

    from .errors import FormatError
    from .normalizers import normalize, validate_and_normalize
    from .store import save_transactions

    text = _read_text(file)
    target = _resolve_out_dir(ctx, out_dir)

    if validate:
        result = validate_and_normalize(text, source)
        for err in result.errors:
            where = f"Row {err.row}" if err.row else "File"
            print(f"{where}: {err.message}", file=sys.stderr)
        if result.errors and not result.transactions:
            raise typer.Exit(1)
        transactions = list(result.transactions)
        print(
            f"Validated {result.total_rows} rows: "
            f"{result.valid_count} valid, {result.error_count} with errors"
        )
    else:
        try:
            transactions = normalize(text, source)
        except FormatError as e:
            raise _fail(str(e)) from None

    try:
        out_file = save_transactions(target, transactions)
    except OSError as e:
        raise _fail(f"Failed to write snapshot: {e}") from None
    print(f"Imported {len(transactions)} transactions -> {out_file}")


@app.command("plan")
def plan_cmd(
    file: Annotated[Path, FILE_OPTION],
    *,
    source: str = SOURCE_OPTION,
    rules: Path | None = RULES_OPTION,
) -> None:
    """Preview categorization of a CSV file without writing anything."""

    from .aggregate import generate_summary
    from .categorize import categorize_transactions
    from .errors import VentureLedgerError
    from .export import format_summary_report
    from .normalizers import normalize

    text = _read_text(file)
    doc = _load_rules(_resolve_rules(rules))
    try:
        transactions = normalize(text, source)
        result = categorize_transactions(transactions, doc)
    except VentureLedgerError as e:
        raise _fail(str(e)) from None

    print(f"Parsed {len(transactions)} transactions from {file}\n")
    print(format_summary_report(generate_summary(result.categorized)))
    print("\nNo files were written. Run 'categorize' to save results.")


@app.command("categorize")
def categorize_cmd(
    ctx: typer.Context,
    *,
    rules: Path | None = RULES_OPTION,
    strict: bool = typer.Option(
        False, "--strict", help="Exit with an error if any transaction stays uncategorized."
    ),
    out_dir: Path | None = OUT_DIR_OPTION,
) -> None:
    """Categorize ``transactions.json`` and write ``categorized.json`` and ``alerts.json``."""

    from .categorize import categorize_transactions
    from .errors import VentureLedgerError
    from .store import load_transactions, save_alerts, save_categorized

    target = _resolve_out_dir(ctx, out_dir)
    try:
        transactions = load_transactions(target)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from None

    doc = _load_rules(_resolve_rules(rules))
    try:
        result = categorize_transactions(transactions, doc)
    except VentureLedgerError as e:
        raise _fail(str(e)) from None

    try:
        categorized_file = save_categorized(target, result.categorized)
        alerts_file = save_alerts(target, result.alerts)
    except OSError as e:
        raise _fail(f"Failed to write snapshot: {e}") from None

    print(f"Categorized {len(result.categorized)} transactions -> {categorized_file}")
    print(f"Alerts: {len(result.alerts)} -> {alerts_file}")

    n_uncategorized = sum(1 for t in result.categorized if t.is_uncategorized)
    if strict and n_uncategorized:
        raise _fail(f"{n_uncategorized} uncategorized transactions in strict mode")
    if n_uncategorized:
        print(f"Warning: {n_uncategorized} uncategorized transactions", file=sys.stderr)
        print("  Run: venture-ledger report --type summary", file=sys.stderr)


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    *,
    venture: str = typer.Option(..., "--venture", help="Venture to export."),
    year: int = typer.Option(..., "--year", help="Calendar year to export (YYYY)."),
    out: Path | None = typer.Option(
        None, "--out", help="Output CSV path (default: <out-dir>/export-<venture>-<year>.csv).",
        dir_okay=False,
    ),
    out_dir: Path | None = OUT_DIR_OPTION,
) -> None:
    """Export one venture's categorized rows for a year as CSV."""

    from .export import export_schedule_c, write_export
    from .store import load_categorized

    target = _resolve_out_dir(ctx, out_dir)
    try:
        categorized = load_categorized(target)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from None

    result = export_schedule_c(categorized, venture=venture, year=year)
    out_file = out if out is not None else target / f"export-{venture}-{year}.csv"
    try:
        write_export(result, out_file)
    except OSError as e:
        raise _fail(f"Failed to write export: {e}") from None
    print(f"Exported {result.count} transactions -> {out_file}")


def _print_monthly(categorized: Sequence[CategorizedTransaction]) -> None:
    from .aggregate import generate_monthly_summary
    from .export import format_money

    table = Table(title="Monthly summary")
    table.add_column("Month")
    table.add_column("Transactions", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Top category")
    for month in generate_monthly_summary(categorized):
        top = min(month.by_category.items(), key=lambda kv: kv[1], default=None)
        table.add_row(
            month.month,
            str(month.transaction_count),
            format_money(month.total_amount),
            f"{top[0]} ({format_money(top[1])})" if top else "",
        )
    Console(file=sys.stdout).print(table)


@app.command("report")
def report_cmd(
    ctx: typer.Context,
    *,
    type_: str = typer.Option(
        "summary", "--type", help="Report type: summary, alerts, monthly."
    ),
    out_dir: Path | None = OUT_DIR_OPTION,
) -> None:
    """Print a report derived from ``categorized.json``."""

    from .aggregate import generate_alerts, generate_summary
    from .export import format_summary_report
    from .store import load_categorized

    kind = type_.strip().lower()
    if kind not in REPORT_TYPES:
        raise _fail(
            f'Unknown report type: "{type_}". Available types: {", ".join(REPORT_TYPES)}'
        )

    target = _resolve_out_dir(ctx, out_dir)
    try:
        categorized = load_categorized(target)
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from None

    if kind == "alerts":
        print(json.dumps(generate_alerts(categorized).to_dict(), indent=2, ensure_ascii=False))
    elif kind == "summary":
        print(format_summary_report(generate_summary(categorized)))
    else:
        _print_monthly(categorized)


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    out_dir: Path | None = OUT_DIR_OPTION,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    ctx.obj = {"out_dir": out_dir}


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m venture_ledger.cli`
    app()
