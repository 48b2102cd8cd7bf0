"""Business-scoped journal entry numbering."""

from uuid import UUID

from smb_ledger.domain.entry_numbers import (
    DEFAULT_ENTRY_NUMBER_WIDTH,
    format_entry_number,
)
from smb_ledger.repositories.interfaces import EntrySequenceRepository
from smb_ledger.services.interfaces import EntryNumberingService


class EntryNumberSequence(EntryNumberingService):
    """Issues strictly increasing, zero-padded entry numbers per business.

    Values come from the storage counter, so two writers can never receive
    the same number. When called inside an atomic scope the reservation is
    rolled back with the scope, which keeps the numbering free of gaps.
    """

    def __init__(
        self,
        sequence_repo: EntrySequenceRepository,
        width: int = DEFAULT_ENTRY_NUMBER_WIDTH,
        prefix: str = "",
    ) -> None:
        self._sequence_repo = sequence_repo
        self._width = width
        self._prefix = prefix

    def next_entry_number(self, business_id: UUID) -> str:
        return self.allocate(business_id, 1)[0]

    def allocate(self, business_id: UUID, count: int) -> list[str]:
        """Reserve ``count`` consecutive entry numbers.

        Args:
            business_id: Business whose sequence advances
            count: How many numbers to reserve

        Returns:
            Formatted numbers in ascending order
        """
        first = self._sequence_repo.allocate(business_id, count)
        return [self.format(value) for value in range(first, first + count)]

    def format(self, value: int) -> str:
        return format_entry_number(value, width=self._width, prefix=self._prefix)
