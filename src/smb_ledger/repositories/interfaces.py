from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import date
from uuid import UUID

from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.transactions import JournalEntry, Transaction
from smb_ledger.domain.value_objects import Money, TransactionType


class LedgerDatabase(ABC):
    """Connection manager that owns the atomic-scope boundary.

    Every repository built on one database shares its connection, so writes
    made by several repositories inside one ``atomic()`` block commit or roll
    back together.
    """

    @abstractmethod
    def initialize(self) -> None:
        pass

    @abstractmethod
    def atomic(self, timeout: float | None = None) -> AbstractContextManager[None]:
        """Open an all-or-nothing scope.

        Nested scopes become savepoints; only the outermost scope honours
        ``timeout``. Storage errors abort the scope and surface as
        ``AtomicityFailure``; any other exception rolls back and propagates
        unchanged.
        """

    @property
    @abstractmethod
    def in_atomic(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class BusinessRepository(ABC):
    @abstractmethod
    def add(self, business: Business) -> None:
        pass

    @abstractmethod
    def get(self, business_id: UUID) -> Business | None:
        pass

    @abstractmethod
    def get_by_name(self, name: str) -> Business | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Business]:
        pass

    @abstractmethod
    def delete(self, business_id: UUID) -> None:
        """Delete the business and everything it owns."""


class AccountRepository(ABC):
    @abstractmethod
    def add(self, account: Account) -> None:
        pass

    @abstractmethod
    def get(self, account_id: UUID) -> Account | None:
        pass

    @abstractmethod
    def get_by_code(self, code: str, business_id: UUID) -> Account | None:
        pass

    @abstractmethod
    def list_by_business(
        self, business_id: UUID, active_only: bool = False
    ) -> Iterable[Account]:
        pass

    @abstractmethod
    def update(self, account: Account) -> None:
        """Persist descriptive fields. Never writes ``current_balance``."""

    @abstractmethod
    def increment_balance(self, account_id: UUID, delta: Money) -> None:
        """Apply ``current_balance = current_balance + delta`` in one statement."""

    @abstractmethod
    def count_references(self, account_id: UUID) -> int:
        """Number of transactions and journal entries pointing at the account."""

    @abstractmethod
    def delete(self, account_id: UUID) -> None:
        pass


class CategoryRepository(ABC):
    @abstractmethod
    def add(self, category: Category) -> None:
        pass

    @abstractmethod
    def get(self, category_id: UUID) -> Category | None:
        pass

    @abstractmethod
    def get_by_name(self, name: str, business_id: UUID) -> Category | None:
        pass

    @abstractmethod
    def list_by_business(self, business_id: UUID) -> Iterable[Category]:
        pass

    @abstractmethod
    def delete(self, category_id: UUID) -> None:
        pass


class TransactionRepository(ABC):
    @abstractmethod
    def add(self, txn: Transaction) -> None:
        """Insert the header and all of its journal entries."""

    @abstractmethod
    def get(self, txn_id: UUID, for_update: bool = False) -> Transaction | None:
        """Load a transaction with its entries.

        With ``for_update`` the header row stays locked until the enclosing
        atomic scope ends.
        """

    @abstractmethod
    def list_by_business(
        self,
        business_id: UUID,
        transaction_type: TransactionType | None = None,
        account_id: UUID | None = None,
        is_reconciled: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[Transaction]:
        pass

    @abstractmethod
    def update(self, txn: Transaction) -> None:
        """Persist non-financial fields only."""

    @abstractmethod
    def delete(self, txn_id: UUID) -> None:
        """Delete the journal entries, then the header.

        Raises:
            TransactionNotFoundError: If no header row was deleted
        """

    @abstractmethod
    def list_entries_by_account(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        posted_only: bool = True,
    ) -> Iterable[JournalEntry]:
        """Entries ordered by date, then entry number."""

    @abstractmethod
    def list_entries_by_business(
        self, business_id: UUID, as_of_date: date | None = None
    ) -> Iterable[JournalEntry]:
        pass

    @abstractmethod
    def list_entry_numbers(self, business_id: UUID) -> list[str]:
        pass

    @abstractmethod
    def list_entries(
        self,
        business_id: UUID,
        account_id: UUID | None = None,
        transaction_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[JournalEntry]:
        """Posted and unposted entries of a business, oldest first."""


class EntrySequenceRepository(ABC):
    @abstractmethod
    def allocate(self, business_id: UUID, count: int = 1) -> int:
        """Reserve ``count`` consecutive values and return the first.

        The counter moves with a single atomic increment. Call inside the
        same atomic scope as the inserts that use the values so a rollback
        returns them.
        """

    @abstractmethod
    def current(self, business_id: UUID) -> int:
        """Last value issued, 0 when the business has none."""
