from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from smb_ledger.exceptions import InvalidAmountError


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    NZD = "NZD"
    CHF = "CHF"
    SGD = "SGD"
    INR = "INR"
    ZAR = "ZAR"
    MXN = "MXN"
    BRL = "BRL"


class AccountType(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class AccountSubType(str, Enum):
    CURRENT_ASSET = "CURRENT_ASSET"
    FIXED_ASSET = "FIXED_ASSET"
    OTHER_ASSET = "OTHER_ASSET"
    CURRENT_LIABILITY = "CURRENT_LIABILITY"
    LONG_TERM_LIABILITY = "LONG_TERM_LIABILITY"
    OWNERS_EQUITY = "OWNERS_EQUITY"
    RETAINED_EARNINGS = "RETAINED_EARNINGS"
    OPERATING_REVENUE = "OPERATING_REVENUE"
    OTHER_REVENUE = "OTHER_REVENUE"
    COST_OF_GOODS_SOLD = "COST_OF_GOODS_SOLD"
    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    OTHER_EXPENSE = "OTHER_EXPENSE"


class BalanceType(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class EntryType(str, Enum):
    STANDARD = "STANDARD"
    ADJUSTING = "ADJUSTING"


# Balances are stored as integer cents
MINOR_UNIT_EXPONENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class Money:
    amount: Decimal
    currency: Currency | str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except InvalidOperation:
                raise InvalidAmountError(str(self.amount), "not a number")

        if isinstance(self.currency, str) and not isinstance(self.currency, Currency):
            try:
                object.__setattr__(self, "currency", Currency[self.currency.upper()])
            except KeyError:
                raise ValueError(f"Invalid currency: {self.currency}")
        elif not isinstance(self.currency, Currency):
            raise ValueError(f"Invalid currency: {self.currency}")

    def __add__(self, other: "Money") -> "Money":
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def __abs__(self) -> "Money":
        return Money(abs(self.amount), self.currency)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount == other.amount and self.currency == other.currency

    def __lt__(self, other: "Money") -> bool:
        if self.currency != other.currency:
            raise ValueError(f"Cannot compare {self.currency} and {other.currency}")
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        return self == other or self < other

    def __str__(self) -> str:
        return f"{self.amount:,.2f} {self.currency.value}"

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    @property
    def has_minor_unit_precision(self) -> bool:
        """True when the amount needs no more than two decimal places."""
        return self.amount == self.amount.quantize(MINOR_UNIT_EXPONENT)

    def to_minor_units(self) -> int:
        if not self.has_minor_unit_precision:
            raise InvalidAmountError(
                str(self.amount), "more than two decimal places"
            )
        return int(self.amount.quantize(MINOR_UNIT_EXPONENT) * 100)

    @classmethod
    def from_minor_units(cls, units: int, currency: Currency | str = "USD") -> "Money":
        return cls(Decimal(units) / 100, currency).quantized()

    def quantized(self) -> "Money":
        return Money(self.amount.quantize(MINOR_UNIT_EXPONENT), self.currency)

    @classmethod
    def zero(cls, currency: Currency | str = "USD") -> "Money":
        return cls(Decimal("0"), currency)


__all__ = [
    "Currency",
    "AccountType",
    "AccountSubType",
    "BalanceType",
    "TransactionType",
    "EntryType",
    "Money",
]
