"""Public interface for the ``venture_ledger`` package.

This module exposes the package's pipeline functions and public models/types
as the stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .aggregate import generate_alerts, generate_monthly_summary, generate_summary
from .categorize import categorize_transactions
from .errors import FormatError, MatchError, RowError, ValidationError, VentureLedgerError
from .export import export_schedule_c, format_summary_report, write_export
from .matching import make_selector, matches, select_rule
from .models import (
    UNASSIGNED,
    UNCATEGORIZED,
    Alert,
    Allocation,
    AuditEntry,
    CategorizationResult,
    CategorizedTransaction,
    ExportResult,
    ImportResult,
    MonthlySummary,
    Summary,
    Transaction,
    UncategorizedReport,
)
from .normalizers import available_sources, normalize, normalize_file, validate_and_normalize
from .rules import (
    Action,
    Condition,
    Rule,
    RulesDocument,
    SplitAllocation,
    load_rules_document,
    load_rules_file,
    validate_rules_document,
)

__all__ = [
    # Pipeline
    "normalize",
    "normalize_file",
    "validate_and_normalize",
    "available_sources",
    "validate_rules_document",
    "load_rules_document",
    "load_rules_file",
    "matches",
    "select_rule",
    "make_selector",
    "categorize_transactions",
    "generate_alerts",
    "generate_summary",
    "generate_monthly_summary",
    "export_schedule_c",
    "write_export",
    "format_summary_report",
    # Models / types
    "Transaction",
    "ImportResult",
    "CategorizedTransaction",
    "Allocation",
    "AuditEntry",
    "Alert",
    "CategorizationResult",
    "Summary",
    "MonthlySummary",
    "UncategorizedReport",
    "ExportResult",
    "RulesDocument",
    "Rule",
    "Condition",
    "Action",
    "SplitAllocation",
    "UNCATEGORIZED",
    "UNASSIGNED",
    # Errors
    "VentureLedgerError",
    "FormatError",
    "ValidationError",
    "MatchError",
    "RowError",
]
