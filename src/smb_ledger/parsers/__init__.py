"""File parsers for transaction imports."""

from smb_ledger.parsers.csv_parser import (
    CSVParser,
    CSVParseResult,
    ImportRow,
    parse_amount,
    parse_date,
)

__all__ = [
    "CSVParser",
    "CSVParseResult",
    "ImportRow",
    "parse_amount",
    "parse_date",
]
