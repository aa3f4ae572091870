import csv
import io
import json
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from venture_ledger.cli import app

BANK_CSV = textwrap.dedent(
    """\
    Date,Description,Amount
    2025-01-05,OPENAI *CHATGPT,-20.00
    2025-01-20,COSTCO WHSE #12,-100.00
    2025-02-01,NETFLIX,-15.49
    2024-12-01,OPENAI *CHATGPT,-20.00
    """
)

RULES = {
    "ventures": ["v1", "v2"],
    "rules": [
        {
            "id": "ai",
            "priority": 10,
            "when": {"contains": ["openai", "chatgpt"]},
            "then": {"category": "Software", "venture": "v1", "requiresReceipt": True},
        },
        {
            "id": "costco",
            "when": {"contains": ["costco"]},
            "then": {
                "category": "Supplies",
                "requiresReceipt": True,
                "split": [{"venture": "v1", "percent": 60}, {"venture": "v2", "percent": 40}],
            },
        },
    ],
}


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    # Keep INFO chatter from the library out of command output.
    monkeypatch.setenv("VENTURE_LEDGER_LOG_LEVEL", "WARNING")
    return CliRunner()


@pytest.fixture
def workspace() -> Path:
    cwd = Path.cwd()
    (cwd / "bank.csv").write_text(BANK_CSV, encoding="utf-8")
    (cwd / "rules").mkdir()
    (cwd / "rules" / "household.json").write_text(json.dumps(RULES), encoding="utf-8")
    return cwd


def _ok(runner, args):
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    return result


def test_full_flow_with_defaults(runner, workspace):
    result = _ok(runner, ["import", "--file", "bank.csv"])
    assert "Imported 4 transactions" in result.output
    txns = json.loads((workspace / "data" / "transactions.json").read_text(encoding="utf-8"))
    assert [t["amount"] for t in txns] == ["-20.00", "-100.00", "-15.49", "-20.00"]

    result = _ok(runner, ["categorize"])
    assert "Categorized 5 transactions" in result.output
    assert "Alerts: 3" in result.output
    assert "1 uncategorized transactions" in result.output
    alerts = json.loads((workspace / "data" / "alerts.json").read_text(encoding="utf-8"))
    assert [a["ruleId"] for a in alerts] == ["ai", "costco", "ai"]

    result = _ok(runner, ["export", "--venture", "v1", "--year", "2025"])
    assert "Exported 2 transactions" in result.output
    rows = list(csv.reader(io.StringIO((workspace / "data" / "export-v1-2025.csv").read_text("utf-8"))))
    assert [r[1] for r in rows[1:]] == ["OPENAI *CHATGPT", "COSTCO WHSE #12"]
    assert rows[2][7:] == ["60", "-100.00"]


def test_out_dir_and_out_options(runner, workspace):
    _ok(runner, ["--out-dir", "ledger", "import", "--file", "bank.csv"])
    assert (workspace / "ledger" / "transactions.json").exists()
    assert not (workspace / "data").exists()

    _ok(runner, ["categorize", "--out-dir", "ledger", "--rules", "rules/household.json"])
    _ok(runner, ["--out-dir", "ledger", "export", "--venture", "v2", "--year", "2025", "--out", "v2.csv"])
    text = (workspace / "v2.csv").read_text(encoding="utf-8")
    assert text.splitlines()[1].startswith("2025-01-20,COSTCO WHSE #12,-40.00,Supplies,v2,")


def test_env_and_dotenv_defaults(runner, workspace, monkeypatch):
    (workspace / "custom-rules.json").write_text(json.dumps(RULES), encoding="utf-8")
    (workspace / ".env").write_text(
        "VENTURE_LEDGER_DATA_DIR=from-dotenv\nVENTURE_LEDGER_RULES=custom-rules.json\n",
        encoding="utf-8",
    )
    (workspace / "rules" / "household.json").unlink()

    _ok(runner, ["import", "--file", "bank.csv"])
    _ok(runner, ["categorize"])
    assert (workspace / "from-dotenv" / "categorized.json").exists()

    monkeypatch.setenv("VENTURE_LEDGER_DATA_DIR", "from-env")
    _ok(runner, ["import", "--file", "bank.csv"])
    assert (workspace / "from-env" / "transactions.json").exists()


def test_import_chase_source(runner, workspace):
    (workspace / "chase.csv").write_text(
        "Transaction Date,Post Date,Description,Category,Type,Amount,Memo\n"
        "03/02/2025,03/03/2025,COSTCO WHSE,Shopping,Sale,84.12,\n",
        encoding="utf-8",
    )
    _ok(runner, ["import", "--file", "chase.csv", "--source", "chase"])
    [txn] = json.loads((workspace / "data" / "transactions.json").read_text(encoding="utf-8"))
    assert txn["amount"] == "-84.12"
    assert txn["source"] == "chase"


def test_import_validate_reports_rows(runner, workspace):
    (workspace / "messy.csv").write_text(
        "Date,Description,Amount\n2025-13-01,BAD,-1\n2025-01-02,GOOD,-2\n", encoding="utf-8"
    )
    result = _ok(runner, ["import", "--file", "messy.csv", "--validate"])
    assert "Row 2: Invalid date" in result.output
    assert "1 valid, 1 with errors" in result.output
    txns = json.loads((workspace / "data" / "transactions.json").read_text(encoding="utf-8"))
    assert [t["description"] for t in txns] == ["GOOD"]


def test_import_validate_fails_on_file_error(runner, workspace):
    (workspace / "wrong.csv").write_text("Foo,Bar\n1,2\n", encoding="utf-8")
    result = runner.invoke(app, ["import", "--file", "wrong.csv", "--validate"])
    assert result.exit_code == 1
    assert "File: Generic CSV: Missing required headers" in result.output


def test_import_errors(runner, workspace):
    result = runner.invoke(app, ["import", "--file", "missing.csv"])
    assert result.exit_code == 1
    assert "Error: File not found: missing.csv" in result.output

    result = runner.invoke(app, ["import", "--file", "bank.csv", "--source", "amex"])
    assert result.exit_code == 1
    assert "Unknown source" in result.output


def test_plan_writes_nothing(runner, workspace):
    result = _ok(runner, ["plan", "--file", "bank.csv"])
    assert "Parsed 4 transactions from bank.csv" in result.output
    assert "Categorization summary" in result.output
    assert "No files were written" in result.output
    assert not (workspace / "data").exists()


def test_categorize_strict_fails_on_uncategorized(runner, workspace):
    _ok(runner, ["import", "--file", "bank.csv"])
    result = runner.invoke(app, ["categorize", "--strict"])
    assert result.exit_code == 1
    assert "1 uncategorized transactions in strict mode" in result.output
    # Snapshots are still written before the strict check.
    assert (workspace / "data" / "categorized.json").exists()


def test_categorize_requires_import_first(runner, workspace):
    result = runner.invoke(app, ["categorize"])
    assert result.exit_code == 1
    assert "Make sure to run the previous steps first" in result.output


def test_categorize_rejects_invalid_rules(runner, workspace):
    _ok(runner, ["import", "--file", "bank.csv"])
    bad = {"rules": [{"id": "x", "when": {}, "then": {"split": [{"venture": "v1", "percent": 50}]}}]}
    (workspace / "bad.json").write_text(json.dumps(bad), encoding="utf-8")
    result = runner.invoke(app, ["categorize", "--rules", "bad.json"])
    assert result.exit_code == 1
    assert "Invalid rules file" in result.output
    assert "must sum to 100" in result.output

    result = runner.invoke(app, ["categorize", "--rules", "nope.json"])
    assert result.exit_code == 1
    assert "Rules file not found" in result.output


def test_reports(runner, workspace):
    _ok(runner, ["import", "--file", "bank.csv"])
    _ok(runner, ["categorize"])

    summary = _ok(runner, ["report"])
    assert "Top uncategorized merchants" in summary.output
    assert "NETFLIX" in summary.output

    alerts = _ok(runner, ["report", "--type", "alerts"])
    payload = json.loads(alerts.output)
    assert payload["uncategorizedCount"] == 1
    assert payload["uncategorized"][0]["description"] == "NETFLIX"

    monthly = _ok(runner, ["report", "--type", "monthly"])
    assert "Monthly summary" in monthly.output
    for month in ("2025-02", "2025-01", "2024-12"):
        assert month in monthly.output
    assert monthly.output.index("2025-02") < monthly.output.index("2024-12")

    result = runner.invoke(app, ["report", "--type", "weekly"])
    assert result.exit_code == 1
    assert "Unknown report type" in result.output


def test_no_arguments_shows_help(runner):
    result = runner.invoke(app, [])
    assert "import" in result.output
    assert "categorize" in result.output
