from collections.abc import Iterator

import pytest

from smb_ledger.domain.chart_of_accounts import build_default_accounts
from smb_ledger.domain.entities import Account, Business
from smb_ledger.repositories.sqlite import (
    SQLiteAccountRepository,
    SQLiteBusinessRepository,
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteEntrySequenceRepository,
    SQLiteTransactionRepository,
)
from smb_ledger.services.bulk_import import BulkImportServiceImpl
from smb_ledger.services.chart_of_accounts import ChartOfAccountsServiceImpl
from smb_ledger.services.entry_numbering import EntryNumberSequence
from smb_ledger.services.ledger import LedgerServiceImpl
from smb_ledger.services.reporting import ReportingServiceImpl


@pytest.fixture
def db() -> Iterator[SQLiteDatabase]:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def business_repo(db: SQLiteDatabase) -> SQLiteBusinessRepository:
    return SQLiteBusinessRepository(db)


@pytest.fixture
def account_repo(db: SQLiteDatabase) -> SQLiteAccountRepository:
    return SQLiteAccountRepository(db)


@pytest.fixture
def category_repo(db: SQLiteDatabase) -> SQLiteCategoryRepository:
    return SQLiteCategoryRepository(db)


@pytest.fixture
def transaction_repo(db: SQLiteDatabase) -> SQLiteTransactionRepository:
    return SQLiteTransactionRepository(db)


@pytest.fixture
def sequence_repo(db: SQLiteDatabase) -> SQLiteEntrySequenceRepository:
    return SQLiteEntrySequenceRepository(db)


@pytest.fixture
def entry_numbers(sequence_repo: SQLiteEntrySequenceRepository) -> EntryNumberSequence:
    return EntryNumberSequence(sequence_repo)


@pytest.fixture
def business(business_repo: SQLiteBusinessRepository) -> Business:
    """Create and persist a test business."""
    business = Business(name="Corner Bakery")
    business_repo.add(business)
    return business


@pytest.fixture
def accounts(
    account_repo: SQLiteAccountRepository, business: Business
) -> dict[str, Account]:
    """Persist the default chart of accounts, keyed by code."""
    chart = build_default_accounts(business.id)
    for account in chart:
        account_repo.add(account)
    return {account.code: account for account in chart}


@pytest.fixture
def ledger_service(
    db: SQLiteDatabase,
    transaction_repo: SQLiteTransactionRepository,
    account_repo: SQLiteAccountRepository,
    category_repo: SQLiteCategoryRepository,
    entry_numbers: EntryNumberSequence,
) -> LedgerServiceImpl:
    return LedgerServiceImpl(
        database=db,
        transaction_repo=transaction_repo,
        account_repo=account_repo,
        category_repo=category_repo,
        entry_numbers=entry_numbers,
    )


@pytest.fixture
def bulk_import_service(
    db: SQLiteDatabase,
    business_repo: SQLiteBusinessRepository,
    account_repo: SQLiteAccountRepository,
    category_repo: SQLiteCategoryRepository,
    transaction_repo: SQLiteTransactionRepository,
    entry_numbers: EntryNumberSequence,
) -> BulkImportServiceImpl:
    return BulkImportServiceImpl(
        database=db,
        business_repo=business_repo,
        account_repo=account_repo,
        category_repo=category_repo,
        transaction_repo=transaction_repo,
        entry_numbers=entry_numbers,
    )


@pytest.fixture
def chart_service(
    db: SQLiteDatabase,
    business_repo: SQLiteBusinessRepository,
    account_repo: SQLiteAccountRepository,
    category_repo: SQLiteCategoryRepository,
) -> ChartOfAccountsServiceImpl:
    return ChartOfAccountsServiceImpl(
        database=db,
        business_repo=business_repo,
        account_repo=account_repo,
        category_repo=category_repo,
    )


@pytest.fixture
def reporting_service(
    business_repo: SQLiteBusinessRepository,
    account_repo: SQLiteAccountRepository,
    transaction_repo: SQLiteTransactionRepository,
) -> ReportingServiceImpl:
    return ReportingServiceImpl(
        business_repo=business_repo,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
    )
