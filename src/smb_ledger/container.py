"""Dependency injection container for SMB Ledger.

Builds the database, repositories and services from ``Settings`` on first
access and caches them.

Usage:
    from smb_ledger.container import Container

    with Container() as container:
        container.ledger_service.record_transaction(...)
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from smb_ledger.config import DatabaseType, Settings, get_settings
from smb_ledger.domain.posting_rules import PostingPolicy
from smb_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from smb_ledger.repositories.interfaces import (
        AccountRepository,
        BusinessRepository,
        CategoryRepository,
        EntrySequenceRepository,
        LedgerDatabase,
        TransactionRepository,
    )
    from smb_ledger.services.bulk_import import BulkImportServiceImpl
    from smb_ledger.services.chart_of_accounts import ChartOfAccountsServiceImpl
    from smb_ledger.services.entry_numbering import EntryNumberSequence
    from smb_ledger.services.ledger import LedgerServiceImpl
    from smb_ledger.services.reporting import ReportingServiceImpl

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    The container can be configured with custom settings for testing:

        test_settings = Settings(sqlite_path=":memory:")
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_postgres(self) -> bool:
        return self._settings.database_type == DatabaseType.POSTGRES

    @cached_property
    def database(self) -> "LedgerDatabase":
        """Open and initialize the configured database on first access."""
        if self.is_postgres:
            return self._create_postgres_database()
        return self._create_sqlite_database()

    def _create_sqlite_database(self) -> "LedgerDatabase":
        from smb_ledger.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)

        db = SQLiteDatabase(
            db_path, busy_timeout=self._settings.sqlite_busy_timeout_seconds
        )
        db.initialize()
        return db

    def _create_postgres_database(self) -> "LedgerDatabase":
        from smb_ledger.repositories.postgres import PostgresDatabase

        url = self._settings.database_url
        if not url:
            raise ValueError("database_url must be set when database_type is postgres")

        logger.info(
            "initializing_postgres_database",
            # Don't log the full URL as it may contain credentials
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
        )

        db = PostgresDatabase(url)
        db.initialize()
        return db

    @cached_property
    def business_repository(self) -> "BusinessRepository":
        if self.is_postgres:
            from smb_ledger.repositories.postgres import PostgresBusinessRepository

            return PostgresBusinessRepository(self.database)
        from smb_ledger.repositories.sqlite import SQLiteBusinessRepository

        return SQLiteBusinessRepository(self.database)

    @cached_property
    def account_repository(self) -> "AccountRepository":
        if self.is_postgres:
            from smb_ledger.repositories.postgres import PostgresAccountRepository

            return PostgresAccountRepository(self.database)
        from smb_ledger.repositories.sqlite import SQLiteAccountRepository

        return SQLiteAccountRepository(self.database)

    @cached_property
    def category_repository(self) -> "CategoryRepository":
        if self.is_postgres:
            from smb_ledger.repositories.postgres import PostgresCategoryRepository

            return PostgresCategoryRepository(self.database)
        from smb_ledger.repositories.sqlite import SQLiteCategoryRepository

        return SQLiteCategoryRepository(self.database)

    @cached_property
    def transaction_repository(self) -> "TransactionRepository":
        if self.is_postgres:
            from smb_ledger.repositories.postgres import PostgresTransactionRepository

            return PostgresTransactionRepository(self.database)
        from smb_ledger.repositories.sqlite import SQLiteTransactionRepository

        return SQLiteTransactionRepository(self.database)

    @cached_property
    def entry_sequence_repository(self) -> "EntrySequenceRepository":
        if self.is_postgres:
            from smb_ledger.repositories.postgres import PostgresEntrySequenceRepository

            return PostgresEntrySequenceRepository(self.database)
        from smb_ledger.repositories.sqlite import SQLiteEntrySequenceRepository

        return SQLiteEntrySequenceRepository(self.database)

    @cached_property
    def posting_policy(self) -> PostingPolicy:
        return PostingPolicy(
            strict_account_roles=self._settings.strict_account_roles,
            allow_inactive_accounts=self._settings.allow_inactive_account_postings,
        )

    @cached_property
    def entry_numbers(self) -> "EntryNumberSequence":
        from smb_ledger.services.entry_numbering import EntryNumberSequence

        return EntryNumberSequence(
            self.entry_sequence_repository,
            width=self._settings.entry_number_width,
            prefix=self._settings.entry_number_prefix,
        )

    @cached_property
    def ledger_service(self) -> "LedgerServiceImpl":
        """Get the ledger service for recording and deleting transactions."""
        from smb_ledger.services.ledger import LedgerServiceImpl

        return LedgerServiceImpl(
            database=self.database,
            transaction_repo=self.transaction_repository,
            account_repo=self.account_repository,
            category_repo=self.category_repository,
            entry_numbers=self.entry_numbers,
            policy=self.posting_policy,
        )

    @cached_property
    def bulk_import_service(self) -> "BulkImportServiceImpl":
        from smb_ledger.services.bulk_import import BulkImportServiceImpl

        return BulkImportServiceImpl(
            database=self.database,
            business_repo=self.business_repository,
            account_repo=self.account_repository,
            category_repo=self.category_repository,
            transaction_repo=self.transaction_repository,
            entry_numbers=self.entry_numbers,
            policy=self.posting_policy,
            batch_size=self._settings.import_batch_size,
            batch_timeout_seconds=self._settings.import_batch_timeout_seconds,
            default_cash_account_code=self._settings.default_cash_account_code,
            default_revenue_account_code=self._settings.default_revenue_account_code,
            default_expense_account_code=self._settings.default_expense_account_code,
        )

    @cached_property
    def chart_of_accounts_service(self) -> "ChartOfAccountsServiceImpl":
        from smb_ledger.services.chart_of_accounts import ChartOfAccountsServiceImpl

        return ChartOfAccountsServiceImpl(
            database=self.database,
            business_repo=self.business_repository,
            account_repo=self.account_repository,
            category_repo=self.category_repository,
        )

    @cached_property
    def reporting_service(self) -> "ReportingServiceImpl":
        """Get the read-only reporting service."""
        from smb_ledger.services.reporting import ReportingServiceImpl

        return ReportingServiceImpl(
            business_repo=self.business_repository,
            account_repo=self.account_repository,
            transaction_repo=self.transaction_repository,
        )

    def close(self) -> None:
        """Close the database connection if one was opened."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    For testing, create a Container directly with custom settings instead
    of using this function.
    """
    return Container()


def reset_container() -> None:
    """Close and forget the global container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()
