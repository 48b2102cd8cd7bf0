from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.transactions import JournalEntry, Transaction
from smb_ledger.domain.value_objects import (
    AccountType,
    BalanceType,
    Currency,
    Money,
    TransactionType,
)

__all__ = [
    "Account",
    "AccountType",
    "BalanceType",
    "Business",
    "Category",
    "Currency",
    "JournalEntry",
    "Money",
    "Transaction",
    "TransactionType",
]

__version__ = "0.1.0"
