from smb_ledger.repositories.interfaces import (
    AccountRepository,
    BusinessRepository,
    CategoryRepository,
    EntrySequenceRepository,
    LedgerDatabase,
    TransactionRepository,
)
from smb_ledger.repositories.postgres import (
    PostgresAccountRepository,
    PostgresBusinessRepository,
    PostgresCategoryRepository,
    PostgresDatabase,
    PostgresEntrySequenceRepository,
    PostgresTransactionRepository,
)
from smb_ledger.repositories.sqlite import (
    SQLiteAccountRepository,
    SQLiteBusinessRepository,
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteEntrySequenceRepository,
    SQLiteTransactionRepository,
)

__all__ = [
    "AccountRepository",
    "BusinessRepository",
    "CategoryRepository",
    "EntrySequenceRepository",
    "LedgerDatabase",
    "TransactionRepository",
    "PostgresAccountRepository",
    "PostgresBusinessRepository",
    "PostgresCategoryRepository",
    "PostgresDatabase",
    "PostgresEntrySequenceRepository",
    "PostgresTransactionRepository",
    "SQLiteAccountRepository",
    "SQLiteBusinessRepository",
    "SQLiteCategoryRepository",
    "SQLiteDatabase",
    "SQLiteEntrySequenceRepository",
    "SQLiteTransactionRepository",
]
