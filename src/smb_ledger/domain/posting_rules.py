"""Debit/credit derivation for user-facing transaction types.

The "main" account is the cash-like side the user picked; the contra account
is the offsetting side.

    INCOME    Dr main    Cr contra   (cash up, revenue up)
    EXPENSE   Dr contra  Cr main     (expense up, cash down)
    TRANSFER  Dr main    Cr contra   (generic movement)

The single recorder and the bulk importer both go through
``derive_posting_lines`` so the two paths cannot disagree.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from smb_ledger.domain.entities import Account
from smb_ledger.domain.transactions import JournalEntry, Transaction
from smb_ledger.domain.value_objects import AccountType, EntryType, Money, TransactionType
from smb_ledger.exceptions import (
    AccountRoleError,
    InactiveAccountError,
    InvalidAccountError,
    InvalidAmountError,
)


# Largest amount NUMERIC(18,2) can hold
MAX_AMOUNT = Decimal("9999999999999999.99")


@dataclass(frozen=True)
class PostingLine:
    account_id: UUID
    debit_amount: Money
    credit_amount: Money


def derive_posting_lines(
    transaction_type: TransactionType,
    main_account_id: UUID,
    contra_account_id: UUID,
    amount: Money,
) -> tuple[PostingLine, PostingLine]:
    """Return the (debit line, credit line) pair for a transaction."""
    zero = Money.zero(amount.currency)
    if transaction_type == TransactionType.EXPENSE:
        debit_account, credit_account = contra_account_id, main_account_id
    else:
        debit_account, credit_account = main_account_id, contra_account_id
    return (
        PostingLine(debit_account, debit_amount=amount, credit_amount=zero),
        PostingLine(credit_account, debit_amount=zero, credit_amount=amount),
    )


def build_journal_entries(
    txn: Transaction,
    contra_account_id: UUID,
    entry_number: str,
    entry_type: EntryType = EntryType.STANDARD,
) -> list[JournalEntry]:
    lines = derive_posting_lines(
        txn.transaction_type, txn.ledger_account_id, contra_account_id, txn.amount
    )
    return [
        JournalEntry(
            business_id=txn.business_id,
            transaction_id=txn.id,
            ledger_account_id=line.account_id,
            entry_date=txn.transaction_date,
            entry_number=entry_number,
            description=txn.description,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            entry_type=entry_type,
        )
        for line in lines
    ]


# Account types accepted under the strict role policy. None means unrestricted.
MAIN_ACCOUNT_TYPES: dict[TransactionType, frozenset[AccountType] | None] = {
    TransactionType.INCOME: frozenset({AccountType.ASSET}),
    TransactionType.EXPENSE: frozenset({AccountType.ASSET, AccountType.LIABILITY}),
    TransactionType.TRANSFER: None,
}
CONTRA_ACCOUNT_TYPES: dict[TransactionType, frozenset[AccountType] | None] = {
    TransactionType.INCOME: frozenset({AccountType.REVENUE}),
    TransactionType.EXPENSE: frozenset({AccountType.EXPENSE, AccountType.ASSET}),
    TransactionType.TRANSFER: None,
}


def check_account_roles(
    transaction_type: TransactionType, main_account: Account, contra_account: Account
) -> None:
    for role, account, rules in (
        ("main", main_account, MAIN_ACCOUNT_TYPES),
        ("contra", contra_account, CONTRA_ACCOUNT_TYPES),
    ):
        allowed = rules[transaction_type]
        if allowed is not None and account.account_type not in allowed:
            raise AccountRoleError(
                account.id,
                role,
                account.account_type.value,
                transaction_type.value,
            )


def validate_amount(amount: Money) -> Money:
    """Return the amount normalised to cents, rejecting non-positive values."""
    if not amount.amount.is_finite():
        raise InvalidAmountError(str(amount.amount), "not a finite number")
    if not amount.is_positive:
        raise InvalidAmountError(str(amount.amount), "must be greater than zero")
    # Must precede the precision check, which quantizes
    if amount.amount > MAX_AMOUNT:
        raise InvalidAmountError(str(amount.amount), f"exceeds the maximum of {MAX_AMOUNT}")
    if not amount.has_minor_unit_precision:
        raise InvalidAmountError(str(amount.amount), "more than two decimal places")
    return amount.quantized()


@dataclass(frozen=True)
class PostingPolicy:
    """Checks applied to a main/contra pair before anything is written."""

    strict_account_roles: bool = False
    allow_inactive_accounts: bool = False

    def check(
        self,
        business_id: UUID,
        transaction_type: TransactionType,
        main_account: Account,
        contra_account: Account,
    ) -> None:
        for account in (main_account, contra_account):
            if account.business_id != business_id:
                raise InvalidAccountError(account.id, "belongs to another business")
            if not account.is_active and not self.allow_inactive_accounts:
                raise InactiveAccountError(account.id, account.name)
        if contra_account.currency != main_account.currency:
            raise InvalidAccountError(
                contra_account.id,
                f"currency {contra_account.currency.value} does not match "
                f"{main_account.currency.value}",
            )
        if self.strict_account_roles:
            check_account_roles(transaction_type, main_account, contra_account)
