"""Tests for entry number formatting and the per-business sequence."""

from uuid import uuid4

import pytest

from smb_ledger.domain.entities import Business
from smb_ledger.domain.entry_numbers import (
    format_entry_number,
    highest_entry_number,
    parse_entry_number,
)
from smb_ledger.services.entry_numbering import EntryNumberSequence


class TestFormatEntryNumber:
    def test_zero_pads_to_default_width(self):
        assert format_entry_number(1) == "000001"
        assert format_entry_number(42) == "000042"

    def test_custom_width_and_prefix(self):
        assert format_entry_number(1, width=3, prefix="JE-") == "JE-001"

    def test_wide_values_are_not_truncated(self):
        assert format_entry_number(1234567) == "1234567"

    def test_rejects_values_below_one(self):
        with pytest.raises(ValueError):
            format_entry_number(0)


class TestParseEntryNumber:
    @pytest.mark.parametrize(
        "text,expected",
        [("000042", 42), ("JE-042", 42), ("JE-1000", 1000), ("7", 7)],
    )
    def test_reads_trailing_digits(self, text, expected):
        assert parse_entry_number(text) == expected

    def test_returns_none_without_digits(self):
        assert parse_entry_number("OPENING") is None

    def test_highest_across_formats(self):
        assert highest_entry_number(["JE-001", "000003", "JE-002", "junk"]) == 3

    def test_highest_of_nothing_is_zero(self):
        assert highest_entry_number([]) == 0


class TestEntryNumberSequence:
    def test_first_number_is_one(self, entry_numbers, business):
        assert entry_numbers.next_entry_number(business.id) == "000001"

    def test_numbers_increase_without_gaps(self, entry_numbers, business):
        issued = [entry_numbers.next_entry_number(business.id) for _ in range(3)]

        assert issued == ["000001", "000002", "000003"]

    def test_allocate_reserves_contiguous_block(self, entry_numbers, business):
        entry_numbers.next_entry_number(business.id)

        block = entry_numbers.allocate(business.id, 3)

        assert block == ["000002", "000003", "000004"]
        assert entry_numbers.next_entry_number(business.id) == "000005"

    def test_sequences_are_scoped_per_business(
        self, entry_numbers, business, business_repo
    ):
        other = Business(name="Other Shop")
        business_repo.add(other)

        entry_numbers.next_entry_number(business.id)
        entry_numbers.next_entry_number(business.id)

        assert entry_numbers.next_entry_number(other.id) == "000001"

    def test_prefix_and_width_come_from_configuration(self, sequence_repo, business):
        sequence = EntryNumberSequence(sequence_repo, width=3, prefix="JE-")

        assert sequence.next_entry_number(business.id) == "JE-001"

    def test_allocation_rolled_back_with_scope(self, db, entry_numbers, business):
        entry_numbers.next_entry_number(business.id)

        with pytest.raises(RuntimeError):
            with db.atomic():
                entry_numbers.next_entry_number(business.id)
                raise RuntimeError("abort")

        assert entry_numbers.next_entry_number(business.id) == "000002"

    def test_allocate_rejects_non_positive_count(self, sequence_repo):
        with pytest.raises(ValueError):
            sequence_repo.allocate(uuid4(), 0)
