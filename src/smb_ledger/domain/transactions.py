from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from smb_ledger.domain.value_objects import EntryType, Money, TransactionType
from smb_ledger.exceptions import UnbalancedTransactionError


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class JournalEntry:
    business_id: UUID
    transaction_id: UUID
    ledger_account_id: UUID
    entry_date: date
    entry_number: str
    id: UUID = field(default_factory=uuid4)
    description: str = ""
    debit_amount: Money = field(default_factory=lambda: Money.zero())
    credit_amount: Money = field(default_factory=lambda: Money.zero())
    entry_type: EntryType = EntryType.STANDARD
    is_posted: bool = True
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def net_amount(self) -> Money:
        return self.debit_amount - self.credit_amount

    @property
    def is_debit(self) -> bool:
        return self.debit_amount.is_positive and self.credit_amount.is_zero

    @property
    def is_credit(self) -> bool:
        return self.credit_amount.is_positive and self.debit_amount.is_zero


@dataclass
class Transaction:
    business_id: UUID
    transaction_date: date
    description: str
    amount: Money
    transaction_type: TransactionType
    ledger_account_id: UUID
    id: UUID = field(default_factory=uuid4)
    category_id: UUID | None = None
    is_reconciled: bool = False
    reference_number: str | None = None
    notes: str | None = None
    journal_entries: list[JournalEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def total_debits(self) -> Money:
        total = Decimal("0")
        for entry in self.journal_entries:
            total += entry.debit_amount.amount
        return Money(total, self.amount.currency)

    @property
    def total_credits(self) -> Money:
        total = Decimal("0")
        for entry in self.journal_entries:
            total += entry.credit_amount.amount
        return Money(total, self.amount.currency)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits == self.amount

    def validate(self) -> None:
        if not self.is_balanced:
            raise UnbalancedTransactionError(
                str(self.total_debits.amount), str(self.total_credits.amount)
            )

    @property
    def entry_number(self) -> str | None:
        # Both lines of one transaction share a number
        if not self.journal_entries:
            return None
        return self.journal_entries[0].entry_number

    @property
    def account_ids(self) -> set[UUID]:
        return {entry.ledger_account_id for entry in self.journal_entries}

    def touch(self) -> None:
        self.updated_at = _utc_now()
