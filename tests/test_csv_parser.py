"""Tests for the CSV import parser."""

from datetime import date
from decimal import Decimal

import pytest

from smb_ledger.exceptions import ValidationError
from smb_ledger.parsers.csv_parser import CSVParser, parse_amount, parse_date


class TestParseHelpers:
    @pytest.mark.parametrize(
        "text",
        ["2024-03-15", "03/15/2024", "03/15/24", "2024/03/15", "03-15-2024"],
    )
    def test_parse_date_formats(self, text):
        assert parse_date(text) == date(2024, 3, 15)

    def test_parse_date_rejects_nonsense(self):
        assert parse_date("yesterday") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("100", Decimal("100")),
            ("$1,234.56", Decimal("1234.56")),
            (" 12.5 ", Decimal("12.5")),
            ("-40.00", Decimal("-40.00")),
        ],
    )
    def test_parse_amount(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["abc", "", "NaN", "Infinity"])
    def test_parse_amount_rejects_non_numbers(self, text):
        assert parse_amount(text) is None


class TestCSVParser:
    def test_parses_rows_with_optional_columns(self):
        text = (
            "Transaction Date,Memo,Amount,Type,Account,Contra Account,Category,Ref,Notes\n"
            "2024-02-01,Cake order,120.00,INCOME,1100,4000,Catering,INV-1,rush\n"
        )

        result = CSVParser().parse_text(text)

        assert result.errors == []
        row = result.rows[0]
        assert row.row_number == 2
        assert (row.date, row.description, row.amount, row.transaction_type) == (
            "2024-02-01",
            "Cake order",
            "120.00",
            "INCOME",
        )
        assert row.account == "1100"
        assert row.contra_account == "4000"
        assert row.category == "Catering"
        assert row.reference_number == "INV-1"
        assert row.notes == "rush"

    def test_optional_columns_default_to_none(self):
        result = CSVParser().parse_text("date,description,amount,type\n2024-02-01,x,1,INCOME\n")

        row = result.rows[0]
        assert row.account is None
        assert row.contra_account is None
        assert row.category is None

    def test_blank_lines_are_skipped(self):
        text = "date,description,amount,type\n2024-02-01,a,1,INCOME\n,,,\n2024-02-02,b,2,INCOME\n"

        result = CSVParser().parse_text(text)

        assert [row.row_number for row in result.rows] == [2, 4]

    def test_rows_missing_required_values_are_reported(self):
        text = "date,description,amount,type\n2024-02-01,,1,\n"

        result = CSVParser().parse_text(text)

        assert result.rows == []
        assert result.errors == ["Row 2: Missing required fields (description, transaction_type)"]

    def test_missing_required_column(self):
        with pytest.raises(ValidationError, match="missing required columns: amount"):
            CSVParser().parse_text("date,description,type\n2024-02-01,x,INCOME\n")

    def test_header_only_file(self):
        with pytest.raises(ValidationError, match="at least one data row"):
            CSVParser().parse_text("date,description,amount,type\n")

    def test_empty_file(self):
        with pytest.raises(ValidationError):
            CSVParser().parse_text("")

    def test_explicit_column_mapping(self):
        parser = CSVParser(
            column_mapping={
                "date": "Posted",
                "description": "Payee",
                "amount": "Value",
                "transaction_type": "Kind",
            }
        )

        result = parser.parse_text("Posted,Payee,Value,Kind\n2024-02-01,Mill,9.99,EXPENSE\n")

        assert result.rows[0].description == "Mill"
        assert result.rows[0].amount == "9.99"

    def test_parse_file(self, tmp_path):
        csv_file = tmp_path / "import.csv"
        csv_file.write_text("date,description,amount,type\n2024-02-01,x,1,INCOME\n", encoding="utf-8-sig")

        result = CSVParser().parse(csv_file)

        assert len(result.rows) == 1
        assert result.rows[0].date == "2024-02-01"

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CSVParser().parse(tmp_path / "nope.csv")
