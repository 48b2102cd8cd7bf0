from smb_ledger.domain.balance import balance_delta, reverse_delta
from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.transactions import JournalEntry, Transaction
from smb_ledger.domain.value_objects import (
    AccountSubType,
    AccountType,
    BalanceType,
    Currency,
    EntryType,
    Money,
    TransactionType,
)

__all__ = [
    "Account",
    "AccountSubType",
    "AccountType",
    "BalanceType",
    "Business",
    "Category",
    "Currency",
    "EntryType",
    "JournalEntry",
    "Money",
    "Transaction",
    "TransactionType",
    "balance_delta",
    "reverse_delta",
]
