import re

DEFAULT_ENTRY_NUMBER_WIDTH = 6

_TRAILING_DIGITS = re.compile(r"(\d+)\s*$")


def format_entry_number(
    value: int, width: int = DEFAULT_ENTRY_NUMBER_WIDTH, prefix: str = ""
) -> str:
    """Render a sequence value, e.g. 42 -> '000042' or 'JE-042'.

    Values wider than ``width`` are rendered in full rather than truncated.
    """
    if value < 1:
        raise ValueError(f"Entry numbers start at 1, got {value}")
    return f"{prefix}{str(value).zfill(width)}"


def parse_entry_number(entry_number: str) -> int | None:
    """Numeric part of an entry number in any known format.

    Both '000042' and the legacy 'JE-042' parse to 42. Returns None when the
    string carries no trailing digits.
    """
    match = _TRAILING_DIGITS.search(entry_number)
    if match is None:
        return None
    return int(match.group(1))


def highest_entry_number(entry_numbers: list[str]) -> int:
    """Greatest numeric value across mixed-format entry numbers, 0 if none."""
    values = [parse_entry_number(number) for number in entry_numbers]
    return max((value for value in values if value is not None), default=0)
