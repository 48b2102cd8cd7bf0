"""CSV file parser for transaction imports."""

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from smb_ledger.exceptions import ValidationError


@dataclass
class ImportRow:
    """One raw import record, as read from a CSV file or built in memory.

    Values stay strings until the importer validates them. Account fields
    accept an account id, code or name.
    """

    date: str
    description: str
    amount: str
    transaction_type: str
    row_number: int | None = None
    account: str | None = None
    contra_account: str | None = None
    category: str | None = None
    reference_number: str | None = None
    notes: str | None = None


REQUIRED_FIELDS = ("date", "description", "amount", "transaction_type")

# Date formats to try
DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%m-%Y",
]


def parse_date(value: str) -> date | None:
    """Parse a date string using the supported formats, None if none match."""
    cleaned = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: str) -> Decimal | None:
    """Parse an amount, ignoring currency symbols, thousands separators and spaces."""
    cleaned = value.strip().replace("$", "").replace(",", "").replace(" ", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


@dataclass
class CSVParseResult:
    rows: list[ImportRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class CSVParser:
    """Parser for transaction CSV exports.

    Columns are matched by keyword so headers such as "Transaction Date",
    "Amount ($)" or "Contra Account" are recognised without configuration.
    Row numbers count the header as row 1, matching what a spreadsheet shows.
    """

    # Header keywords per field, checked in order; the first matching column wins
    COLUMN_KEYWORDS: dict[str, tuple[str, ...]] = {
        "contra_account": ("contra",),
        "date": ("date",),
        "description": ("description", "desc", "memo"),
        "amount": ("amount",),
        "transaction_type": ("type",),
        "category": ("category",),
        "account": ("account",),
        "reference_number": ("reference", "ref"),
        "notes": ("note",),
    }

    def __init__(self, column_mapping: dict[str, str] | None = None) -> None:
        """Initialize CSV parser.

        Args:
            column_mapping: Optional mapping from field names to actual column
                names. Keys: 'date', 'description', 'amount', 'transaction_type',
                'account', 'contra_account', 'category', 'reference_number', 'notes'
        """
        self._column_mapping = column_mapping or {}

    def parse(self, file_path: str | Path) -> CSVParseResult:
        """Parse a CSV file into import rows.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValidationError: If the header lacks a required column or the file
                has no data rows.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")
        with open(path, newline="", encoding="utf-8-sig") as csvfile:
            return self._parse_lines(csvfile)

    def parse_text(self, text: str) -> CSVParseResult:
        return self._parse_lines(io.StringIO(text))

    def detect_columns(self, fieldnames: Sequence[str]) -> dict[str, str | None]:
        columns: dict[str, str | None] = {name: None for name in self.COLUMN_KEYWORDS}
        normalized = {name.lower().strip(): name for name in fieldnames}

        if self._column_mapping:
            for field_name, col_name in self._column_mapping.items():
                if col_name in fieldnames:
                    columns[field_name] = col_name
                elif col_name.lower().strip() in normalized:
                    columns[field_name] = normalized[col_name.lower().strip()]
            return columns

        claimed: set[str] = set()
        for field_name, keywords in self.COLUMN_KEYWORDS.items():
            for lower, original in normalized.items():
                if original in claimed:
                    continue
                if any(keyword in lower for keyword in keywords):
                    columns[field_name] = original
                    claimed.add(original)
                    break
        return columns

    def _parse_lines(self, lines: Iterable[str]) -> CSVParseResult:
        reader = csv.DictReader(lines)
        if not reader.fieldnames:
            raise ValidationError(
                "CSV file must contain a header row and at least one data row"
            )

        columns = self.detect_columns(reader.fieldnames)
        missing = [name for name in REQUIRED_FIELDS if columns[name] is None]
        if missing:
            raise ValidationError(
                f"CSV file is missing required columns: {', '.join(missing)}",
                context={"missing": missing, "header": list(reader.fieldnames)},
            )

        result = CSVParseResult()
        seen_data = False
        for row_number, raw in enumerate(reader, start=2):
            values = {
                name: (raw.get(column) or "").strip() if column else ""
                for name, column in columns.items()
            }
            if not any(values.values()):
                continue
            seen_data = True

            empty = [name for name in REQUIRED_FIELDS if not values[name]]
            if empty:
                result.errors.append(
                    f"Row {row_number}: Missing required fields ({', '.join(empty)})"
                )
                continue

            result.rows.append(
                ImportRow(
                    date=values["date"],
                    description=values["description"],
                    amount=values["amount"],
                    transaction_type=values["transaction_type"],
                    row_number=row_number,
                    account=values["account"] or None,
                    contra_account=values["contra_account"] or None,
                    category=values["category"] or None,
                    reference_number=values["reference_number"] or None,
                    notes=values["notes"] or None,
                )
            )

        if not seen_data:
            raise ValidationError(
                "CSV file must contain a header row and at least one data row"
            )
        return result
