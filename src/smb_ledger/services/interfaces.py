from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from uuid import UUID

from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.transactions import JournalEntry, Transaction
from smb_ledger.domain.value_objects import (
    AccountSubType,
    AccountType,
    BalanceType,
    Currency,
    Money,
    TransactionType,
)
from smb_ledger.parsers.csv_parser import ImportRow


@dataclass
class BulkImportResult:
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    transaction_ids: list[UUID] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


@dataclass
class GeneralLedgerLine:
    entry_date: date
    entry_number: str
    description: str
    transaction_id: UUID
    debit: Money
    credit: Money
    balance: Money


@dataclass
class GeneralLedgerReport:
    account_id: UUID
    account_code: str
    account_name: str
    start_date: date | None
    end_date: date | None
    opening_balance: Money
    lines: list[GeneralLedgerLine]
    total_debits: Money
    total_credits: Money
    ending_balance: Money


@dataclass
class TrialBalanceLine:
    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit: Money
    credit: Money


@dataclass
class TrialBalanceReport:
    business_id: UUID
    as_of_date: date
    lines: list[TrialBalanceLine]
    total_debits: Money
    total_credits: Money

    @property
    def difference(self) -> Money:
        return self.total_debits - self.total_credits

    @property
    def is_balanced(self) -> bool:
        return self.difference.is_zero


@dataclass
class BalanceDrift:
    account_id: UUID
    account_code: str
    stored_balance: Money
    computed_balance: Money

    @property
    def drift(self) -> Money:
        return self.stored_balance - self.computed_balance


class EntryNumberingService(ABC):
    @abstractmethod
    def next_entry_number(self, business_id: UUID) -> str:
        pass

    @abstractmethod
    def allocate(self, business_id: UUID, count: int) -> list[str]:
        pass


class LedgerService(ABC):
    @abstractmethod
    def record_transaction(
        self,
        business_id: UUID,
        transaction_date: date,
        description: str,
        amount: Money,
        transaction_type: TransactionType,
        main_account_id: UUID,
        contra_account_id: UUID,
        category_id: UUID | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: UUID) -> None:
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Transaction:
        pass

    @abstractmethod
    def list_transactions(
        self,
        business_id: UUID,
        transaction_type: TransactionType | None = None,
        account_id: UUID | None = None,
        is_reconciled: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Transaction]:
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: UUID,
        description: str | None = None,
        category_id: UUID | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        is_reconciled: bool | None = None,
        clear_category: bool = False,
    ) -> Transaction:
        pass

    @abstractmethod
    def reconcile_transaction(self, transaction_id: UUID) -> Transaction:
        pass

    @abstractmethod
    def unreconcile_transaction(self, transaction_id: UUID) -> Transaction:
        pass


class BulkImportService(ABC):
    @abstractmethod
    def bulk_import(self, business_id: UUID, rows: list[ImportRow]) -> BulkImportResult:
        pass

    @abstractmethod
    def import_csv(self, business_id: UUID, path: str | Path) -> BulkImportResult:
        pass


class ChartOfAccountsService(ABC):
    @abstractmethod
    def create_business(self, name: str, currency: Currency = Currency.USD) -> Business:
        pass

    @abstractmethod
    def get_business(self, business_id: UUID) -> Business:
        pass

    @abstractmethod
    def list_businesses(self) -> list[Business]:
        pass

    @abstractmethod
    def delete_business(self, business_id: UUID) -> None:
        pass

    @abstractmethod
    def create_account(
        self,
        business_id: UUID,
        code: str,
        name: str,
        account_type: AccountType,
        sub_type: AccountSubType | None = None,
        normal_balance: BalanceType | None = None,
        description: str | None = None,
    ) -> Account:
        pass

    @abstractmethod
    def provision_default_chart(self, business_id: UUID) -> int:
        pass

    @abstractmethod
    def get_account(self, account_id: UUID) -> Account:
        pass

    @abstractmethod
    def get_account_by_code(self, business_id: UUID, code: str) -> Account:
        pass

    @abstractmethod
    def list_accounts(self, business_id: UUID, active_only: bool = False) -> list[Account]:
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> Account:
        pass

    @abstractmethod
    def delete_account(self, account_id: UUID) -> None:
        pass

    @abstractmethod
    def create_category(
        self,
        business_id: UUID,
        name: str,
        category_type: TransactionType | None = None,
        description: str | None = None,
    ) -> Category:
        pass

    @abstractmethod
    def list_categories(self, business_id: UUID) -> list[Category]:
        pass


class ReportingService(ABC):
    @abstractmethod
    def general_ledger(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> GeneralLedgerReport:
        pass

    @abstractmethod
    def trial_balance(
        self, business_id: UUID, as_of_date: date | None = None
    ) -> TrialBalanceReport:
        pass

    @abstractmethod
    def audit_balances(self, business_id: UUID) -> list[BalanceDrift]:
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        business_id: UUID,
        account_id: UUID | None = None,
        transaction_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[JournalEntry]:
        pass
