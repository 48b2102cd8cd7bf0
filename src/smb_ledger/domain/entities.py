from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from smb_ledger.domain.balance import expected_normal_balance
from smb_ledger.domain.value_objects import (
    AccountSubType,
    AccountType,
    BalanceType,
    Currency,
    Money,
    TransactionType,
)
from smb_ledger.exceptions import NormalBalanceMismatchError


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Business:
    name: str
    id: UUID = field(default_factory=uuid4)
    currency: Currency = Currency.USD
    created_at: datetime = field(default_factory=_utc_now)


@dataclass
class Account:
    """A chart-of-accounts entry.

    ``normal_balance`` is derived from ``account_type`` when omitted and
    validated against it when given. ``current_balance`` only moves through
    journal-entry postings made by the ledger services.
    """

    business_id: UUID
    code: str
    name: str
    account_type: AccountType
    id: UUID = field(default_factory=uuid4)
    sub_type: AccountSubType | None = None
    normal_balance: BalanceType | None = None
    current_balance: Money | None = None
    currency: Currency = Currency.USD
    description: str | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        expected = expected_normal_balance(self.account_type)
        if self.normal_balance is None:
            self.normal_balance = expected
        elif self.normal_balance != expected:
            raise NormalBalanceMismatchError(
                self.account_type.value, self.normal_balance.value, expected.value
            )
        if self.current_balance is None:
            self.current_balance = Money.zero(self.currency)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == BalanceType.DEBIT

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = _utc_now()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = _utc_now()


@dataclass
class Category:
    business_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    category_type: TransactionType | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
