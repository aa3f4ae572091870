# ruff: noqa: E501
import re
import textwrap
from decimal import Decimal

import pytest

from venture_ledger import FormatError, normalize, normalize_file, validate_and_normalize
from venture_ledger.ingest import make_transaction_id, normalize_date, to_decimal
from venture_ledger.normalizers import available_sources

_ID_RE = re.compile(r"^(?P<source>[a-z]+):(?P<date>\d{4}-\d{2}-\d{2}):(?P<digest>[0-9a-f]{12}):(?P<index>\d+)$")


def _dedent(s: str) -> str:
    # Keep internal newlines, but normalize indentation for readability.
    return textwrap.dedent(s).lstrip("\n").rstrip()


def test_generic_snapshot():
    csv_text = _dedent(
        """
        Date,Description,Amount
        2025-01-05,OPENAI *CHATGPT,-20.00
        01/07/2025,"Trader Joe's, Inc",-54.3
        2025-01-09,PAYROLL ACME,"1,250.00"
        """
    )

    rows = normalize(csv_text, "generic")

    assert [(t.date, t.description, t.amount, t.source) for t in rows] == [
        ("2025-01-05", "OPENAI *CHATGPT", Decimal("-20.00"), "generic"),
        ("2025-01-07", "Trader Joe's, Inc", Decimal("-54.3"), "generic"),
        ("2025-01-09", "PAYROLL ACME", Decimal("1250.00"), "generic"),
    ]
    for i, t in enumerate(rows, start=1):
        m = _ID_RE.match(t.id)
        assert m is not None, t.id
        assert m["source"] == "generic"
        assert m["date"] == t.date
        assert int(m["index"]) == i


def test_generic_header_aliases():
    csv_text = _dedent(
        """
        Posting Date,Merchant,Transaction Amount
        2025-02-01,BLUE BOTTLE,-6.50
        """
    )
    [t] = normalize(csv_text)
    assert (t.date, t.description, t.amount) == ("2025-02-01", "BLUE BOTTLE", Decimal("-6.50"))


def test_chase_type_forces_sign_and_memo_is_appended():
    csv_text = _dedent(
        """
        Transaction Date,Post Date,Description,Category,Type,Amount,Memo
        03/02/2025,03/03/2025,COSTCO WHSE #123,Shopping,Sale,84.12,
        03/04/2025,03/05/2025,AMAZON MKTPLACE,Shopping,Return,-15.00,order 42
        03/06/2025,03/06/2025,AUTOMATIC PAYMENT,,Payment,-500.00,
        03/07/2025,03/07/2025,ANNUAL FEE,Fees,Fee,-95.00,
        """
    )

    rows = normalize(csv_text, "chase")

    assert [(t.date, t.description, t.amount) for t in rows] == [
        ("2025-03-02", "COSTCO WHSE #123", Decimal("-84.12")),
        ("2025-03-04", "AMAZON MKTPLACE [order 42]", Decimal("15.00")),
        ("2025-03-06", "AUTOMATIC PAYMENT", Decimal("500.00")),
        ("2025-03-07", "ANNUAL FEE", Decimal("-95.00")),
    ]
    assert all(t.source == "chase" for t in rows)
    assert all(t.id.startswith("chase:") for t in rows)


def test_chase_falls_back_to_post_date():
    csv_text = _dedent(
        """
        Post Date,Description,Type,Amount
        05/01/2025,NETFLIX,sale,15.49
        """
    )
    [t] = normalize(csv_text, "chase")
    assert t.date == "2025-05-01"
    assert t.amount == Decimal("-15.49")


def test_costco_debit_credit_and_skipped_rows():
    csv_text = _dedent(
        """
        Status,Date,Description,Debit,Credit,Member Name
        Cleared,04/01/2025,COSTCO GAS #456,45.67,,A B
        Pending,04/02/2025,COSTCO WHSE,10.00,,A B
        Cleared,04/03/2025,REFUND,,12.50,A B
        Cleared,04/04/2025,ZERO ADJ,,,A B
        """
    )

    rows = normalize(csv_text, "costco")

    assert [(t.date, t.description, t.amount) for t in rows] == [
        ("2025-04-01", "COSTCO GAS #456", Decimal("-45.67")),
        ("2025-04-03", "REFUND", Decimal("12.50")),
    ]
    # Skipped rows still advance the row index used in ids.
    assert rows[0].id.endswith(":1")
    assert rows[1].id.endswith(":3")


def test_costco_amount_column_fallback():
    csv_text = _dedent(
        """
        Date,Description,Amount
        2025-06-01,COSTCO WHSE,-120.00
        """
    )
    [t] = normalize(csv_text, "costco")
    assert t.amount == Decimal("-120.00")


def test_ids_are_deterministic_and_distinguish_duplicate_rows():
    csv_text = _dedent(
        """
        Date,Description,Amount
        2025-01-05,COFFEE,-4.00
        2025-01-05,COFFEE,-4.00
        """
    )

    first = normalize(csv_text)
    second = normalize(csv_text)

    assert [t.id for t in first] == [t.id for t in second]
    assert first[0].id != first[1].id
    assert first[0].id == make_transaction_id(
        source="generic", date_iso="2025-01-05", description="COFFEE", index=1
    )


def test_bom_blank_lines_and_quoted_newlines():
    csv_text = '\ufeffDate,Description,Amount\n\n2025-01-01,"Line one\nLine two",-1\n\n'
    [t] = normalize(csv_text)
    assert t.description == "Line one\nLine two"
    assert t.id.endswith(":1")


def test_best_effort_skips_malformed_rows():
    csv_text = _dedent(
        """
        Date,Description,Amount
        not-a-date,BAD,-1
        2025-02-03,OK,-3
        """
    )
    rows = normalize(csv_text)
    assert [t.description for t in rows] == ["OK"]


def test_validating_mode_reports_each_row():
    csv_text = _dedent(
        """
        Date,Description,Amount
        2025-13-01,BAD DATE,-1
        2025-02-01,,-2
        2025-02-02,BAD AMOUNT,abc
        2025-02-03,OK,-3
        """
    )

    result = validate_and_normalize(csv_text, "generic")

    assert result.total_rows == 4
    assert result.valid_count == 1
    assert result.error_count == 3
    assert [(e.row, e.field, e.message) for e in result.errors] == [
        (2, "date", "Invalid date"),
        (3, "description", "Empty description"),
        (4, "amount", "Invalid amount"),
    ]
    assert result.errors[2].value == "abc"
    assert result.to_dict()["validCount"] == 1


def test_missing_headers_raise_format_error():
    with pytest.raises(FormatError) as excinfo:
        normalize("Foo,Bar\n1,2\n", "generic")
    err = excinfo.value
    assert "Missing required headers" in str(err)
    assert err.found == ("Foo", "Bar")
    assert "Amount" in err.expected


def test_validating_mode_turns_file_errors_into_row_zero():
    result = validate_and_normalize("Foo,Bar\n1,2\n", "chase")
    assert result.transactions == ()
    assert len(result.errors) == 1
    assert result.errors[0].row == 0
    assert "Chase CSV" in result.errors[0].message


def test_row_numbers_are_physical_lines():
    csv_text = 'Date,Description,Amount\n\n2025-01-01,"split\nacross lines",-1\nbad,X,-2\n'
    result = validate_and_normalize(csv_text)
    assert result.valid_count == 1
    assert [(e.row, e.field) for e in result.errors] == [(5, "date")]


def test_unparseable_csv_is_a_format_error():
    csv_text = "Date,Description,Amount\n2025-01-01," + "A" * 200_000 + ",-1\n"
    with pytest.raises(FormatError, match="could not be parsed"):
        normalize(csv_text)

    result = validate_and_normalize(csv_text)
    assert result.transactions == ()
    assert [e.row for e in result.errors] == [0]
    assert "could not be parsed" in result.errors[0].message


def test_very_large_amounts_render_in_full():
    [t] = normalize("Date,Description,Amount\n2025-01-01,X,1e30\n")
    assert t.to_dict()["amount"] == "1" + "0" * 30 + ".00"


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_empty_input_is_a_format_error(text):
    with pytest.raises(FormatError, match="empty"):
        normalize(text)


def test_unknown_source():
    with pytest.raises(FormatError, match="Unknown source"):
        normalize("Date,Description,Amount\n", "amex")
    assert available_sources() == ("generic", "chase", "costco")


def test_normalize_file(tmp_path):
    path = tmp_path / "bank.csv"
    path.write_text("Date,Description,Amount\n2025-07-04,FIREWORKS,-80\n", encoding="utf-8")
    [t] = normalize_file(path, "generic")
    assert t.description == "FIREWORKS"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.34", Decimal("12.34")),
        ("-12.34", Decimal("-12.34")),
        ("$1,000.00", Decimal("1000.00")),
        ("(12.34)", Decimal("-12.34")),
        ("-($5.00)", Decimal("-5.00")),
        ("+7", Decimal("7")),
    ],
)
def test_to_decimal(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "NaN", "Infinity"])
def test_to_decimal_rejects(raw):
    with pytest.raises(ValueError):
        to_decimal(raw)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-01-31", "2025-01-31"),
        ("1/2/2025", "2025-01-02"),
        ("12/31/2024", "2024-12-31"),
        ("2025-02-30", None),
        ("31/12/2024", None),
        ("", None),
    ],
)
def test_normalize_date(raw, expected):
    assert normalize_date(raw) == expected
