"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import psycopg2
import psycopg2.errors
import psycopg2.extras

from smb_ledger.domain.entities import Account, Business, Category
from smb_ledger.domain.entry_numbers import highest_entry_number
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
from smb_ledger.exceptions import (
    AtomicityFailure,
    AtomicTimeoutError,
    TransactionNotFoundError,
)
from smb_ledger.logging_config import get_logger
from smb_ledger.repositories.interfaces import (
    AccountRepository,
    BusinessRepository,
    CategoryRepository,
    EntrySequenceRepository,
    LedgerDatabase,
    TransactionRepository,
)

logger = get_logger(__name__)


class PostgresDatabase(LedgerDatabase):
    """PostgreSQL database connection manager.

    The connection stays in autocommit mode; ``atomic()`` issues BEGIN and
    COMMIT itself so that nesting can map onto savepoints.
    """

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None
        self._depth = 0

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        if self._connection is None or self._connection.closed:
            self._connection = psycopg2.connect(
                self._connection_string,
                cursor_factory=psycopg2.extras.RealDictCursor,
            )
            self._connection.autocommit = True
            self._depth = 0
        return self._connection

    def execute(self, query: str, params: Iterable[Any] = ()) -> list[Any]:
        conn = self.get_connection()
        with conn.cursor() as cur:
            cur.execute(query, tuple(params))
            if cur.description is None:
                return []
            return cur.fetchall()

    @property
    def in_atomic(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self, timeout: float | None = None) -> Iterator[None]:
        outermost = self._depth == 0
        savepoint = f"sp_{self._depth}"
        deadline = time.monotonic() + timeout if outermost and timeout else None

        try:
            if outermost:
                self.execute("BEGIN")
                if timeout:
                    self.execute(
                        "SELECT set_config('statement_timeout', %s, true)",
                        (str(int(timeout * 1000)),),
                    )
            else:
                self.execute(f"SAVEPOINT {savepoint}")
        except psycopg2.Error as e:
            raise AtomicityFailure(str(e)) from e

        self._depth += 1
        try:
            yield
            if deadline is not None and time.monotonic() > deadline:
                raise AtomicTimeoutError(timeout or 0)
        except BaseException as exc:
            self._depth -= 1
            self._rollback(outermost, savepoint)
            if outermost and isinstance(exc, psycopg2.errors.QueryCanceled):
                raise AtomicTimeoutError(timeout or 0) from exc
            if isinstance(exc, psycopg2.Error):
                raise AtomicityFailure(str(exc)) from exc
            raise

        self._depth -= 1
        try:
            if outermost:
                self.execute("COMMIT")
            else:
                self.execute(f"RELEASE SAVEPOINT {savepoint}")
        except psycopg2.Error as e:
            self._rollback(outermost, savepoint)
            raise AtomicityFailure(str(e)) from e

    def _rollback(self, outermost: bool, savepoint: str) -> None:
        if outermost:
            self.execute("ROLLBACK")
            logger.warning("atomic_scope_rolled_back", database="postgres")
        else:
            self.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
            self.execute(f"RELEASE SAVEPOINT {savepoint}")

    def initialize(self) -> None:
        """Create all database tables."""
        self.execute(
            """
            CREATE TABLE IF NOT EXISTS businesses (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                currency TEXT NOT NULL DEFAULT 'USD',
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL REFERENCES businesses(id),
                code TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                account_type TEXT NOT NULL,
                sub_type TEXT,
                normal_balance TEXT NOT NULL,
                current_balance NUMERIC(18, 2) NOT NULL DEFAULT 0,
                currency TEXT NOT NULL DEFAULT 'USD',
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (business_id, code),
                CHECK (
                    (account_type IN ('ASSET', 'EXPENSE') AND normal_balance = 'DEBIT')
                    OR (account_type IN ('LIABILITY', 'EQUITY', 'REVENUE')
                        AND normal_balance = 'CREDIT')
                )
            );
            CREATE INDEX IF NOT EXISTS idx_accounts_business ON accounts(business_id);

            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL REFERENCES businesses(id),
                name TEXT NOT NULL,
                category_type TEXT,
                description TEXT,
                created_at TEXT NOT NULL,
                UNIQUE (business_id, name)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL REFERENCES businesses(id),
                transaction_date TEXT NOT NULL,
                description TEXT NOT NULL,
                amount NUMERIC(18, 2) NOT NULL CHECK (amount > 0),
                currency TEXT NOT NULL DEFAULT 'USD',
                transaction_type TEXT NOT NULL,
                ledger_account_id TEXT NOT NULL REFERENCES accounts(id),
                category_id TEXT REFERENCES categories(id),
                is_reconciled BOOLEAN NOT NULL DEFAULT FALSE,
                reference_number TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_transactions_business_date
                ON transactions(business_id, transaction_date);

            CREATE TABLE IF NOT EXISTS journal_entries (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL REFERENCES businesses(id),
                transaction_id TEXT NOT NULL REFERENCES transactions(id),
                ledger_account_id TEXT NOT NULL REFERENCES accounts(id),
                entry_date TEXT NOT NULL,
                entry_number TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                debit_amount NUMERIC(18, 2) NOT NULL DEFAULT 0 CHECK (debit_amount >= 0),
                credit_amount NUMERIC(18, 2) NOT NULL DEFAULT 0 CHECK (credit_amount >= 0),
                currency TEXT NOT NULL DEFAULT 'USD',
                entry_type TEXT NOT NULL DEFAULT 'STANDARD',
                is_posted BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_journal_entries_transaction
                ON journal_entries(transaction_id);
            CREATE INDEX IF NOT EXISTS idx_journal_entries_account
                ON journal_entries(ledger_account_id, entry_date);
            CREATE INDEX IF NOT EXISTS idx_journal_entries_business
                ON journal_entries(business_id, entry_number);

            CREATE TABLE IF NOT EXISTS entry_sequences (
                business_id TEXT PRIMARY KEY REFERENCES businesses(id),
                last_value BIGINT NOT NULL DEFAULT 0
            );
            """
        )

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._depth = 0


def _money(amount: Decimal, currency: str) -> Money:
    return Money(Decimal(amount), currency).quantized()


class PostgresBusinessRepository(BusinessRepository):
    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, business: Business) -> None:
        self._db.execute(
            "INSERT INTO businesses (id, name, currency, created_at) VALUES (%s, %s, %s, %s)",
            (
                str(business.id),
                business.name,
                business.currency.value,
                business.created_at.isoformat(),
            ),
        )

    def get(self, business_id: UUID) -> Business | None:
        rows = self._db.execute(
            "SELECT * FROM businesses WHERE id = %s", (str(business_id),)
        )
        return self._row_to_business(rows[0]) if rows else None

    def get_by_name(self, name: str) -> Business | None:
        rows = self._db.execute("SELECT * FROM businesses WHERE name = %s", (name,))
        return self._row_to_business(rows[0]) if rows else None

    def list_all(self) -> Iterable[Business]:
        rows = self._db.execute("SELECT * FROM businesses ORDER BY name")
        return [self._row_to_business(row) for row in rows]

    def delete(self, business_id: UUID) -> None:
        key = (str(business_id),)
        with self._db.atomic():
            self._db.execute("DELETE FROM journal_entries WHERE business_id = %s", key)
            self._db.execute("DELETE FROM transactions WHERE business_id = %s", key)
            self._db.execute("DELETE FROM categories WHERE business_id = %s", key)
            self._db.execute("DELETE FROM accounts WHERE business_id = %s", key)
            self._db.execute("DELETE FROM entry_sequences WHERE business_id = %s", key)
            self._db.execute("DELETE FROM businesses WHERE id = %s", key)

    def _row_to_business(self, row: Any) -> Business:
        return Business(
            name=row["name"],
            id=UUID(row["id"]),
            currency=Currency(row["currency"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class PostgresAccountRepository(AccountRepository):
    """PostgreSQL implementation of AccountRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        self._db.execute(
            """
            INSERT INTO accounts (id, business_id, code, name, description, account_type,
                                  sub_type, normal_balance, current_balance, currency,
                                  is_active, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                str(account.id),
                str(account.business_id),
                account.code,
                account.name,
                account.description,
                account.account_type.value,
                account.sub_type.value if account.sub_type else None,
                account.normal_balance.value,
                account.current_balance.quantized().amount,
                account.currency.value,
                account.is_active,
                account.created_at.isoformat(),
                account.updated_at.isoformat(),
            ),
        )

    def get(self, account_id: UUID) -> Account | None:
        rows = self._db.execute(
            "SELECT * FROM accounts WHERE id = %s", (str(account_id),)
        )
        return self._row_to_account(rows[0]) if rows else None

    def get_by_code(self, code: str, business_id: UUID) -> Account | None:
        rows = self._db.execute(
            "SELECT * FROM accounts WHERE code = %s AND business_id = %s",
            (code, str(business_id)),
        )
        return self._row_to_account(rows[0]) if rows else None

    def list_by_business(
        self, business_id: UUID, active_only: bool = False
    ) -> Iterable[Account]:
        query = "SELECT * FROM accounts WHERE business_id = %s"
        if active_only:
            query += " AND is_active"
        query += " ORDER BY code"
        rows = self._db.execute(query, (str(business_id),))
        return [self._row_to_account(row) for row in rows]

    def update(self, account: Account) -> None:
        self._db.execute(
            """
            UPDATE accounts SET
                code = %s,
                name = %s,
                description = %s,
                sub_type = %s,
                is_active = %s,
                updated_at = %s
            WHERE id = %s
            """,
            (
                account.code,
                account.name,
                account.description,
                account.sub_type.value if account.sub_type else None,
                account.is_active,
                account.updated_at.isoformat(),
                str(account.id),
            ),
        )

    def increment_balance(self, account_id: UUID, delta: Money) -> None:
        # NUMERIC(18, 2) would silently round sub-cent deltas
        delta.to_minor_units()
        self._db.execute(
            "UPDATE accounts SET current_balance = current_balance + %s WHERE id = %s",
            (delta.amount, str(account_id)),
        )

    def count_references(self, account_id: UUID) -> int:
        key = str(account_id)
        rows = self._db.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM transactions WHERE ledger_account_id = %s)
                + (SELECT COUNT(*) FROM journal_entries WHERE ledger_account_id = %s)
                AS refs
            """,
            (key, key),
        )
        return int(rows[0]["refs"])

    def delete(self, account_id: UUID) -> None:
        self._db.execute("DELETE FROM accounts WHERE id = %s", (str(account_id),))

    def _row_to_account(self, row: Any) -> Account:
        return Account(
            business_id=UUID(row["business_id"]),
            code=row["code"],
            name=row["name"],
            account_type=AccountType(row["account_type"]),
            id=UUID(row["id"]),
            sub_type=AccountSubType(row["sub_type"]) if row["sub_type"] else None,
            normal_balance=BalanceType(row["normal_balance"]),
            current_balance=_money(row["current_balance"], row["currency"]),
            currency=Currency(row["currency"]),
            description=row["description"],
            is_active=row["is_active"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class PostgresCategoryRepository(CategoryRepository):
    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, category: Category) -> None:
        self._db.execute(
            """
            INSERT INTO categories (id, business_id, name, category_type, description,
                                    created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (
                str(category.id),
                str(category.business_id),
                category.name,
                category.category_type.value if category.category_type else None,
                category.description,
                category.created_at.isoformat(),
            ),
        )

    def get(self, category_id: UUID) -> Category | None:
        rows = self._db.execute(
            "SELECT * FROM categories WHERE id = %s", (str(category_id),)
        )
        return self._row_to_category(rows[0]) if rows else None

    def get_by_name(self, name: str, business_id: UUID) -> Category | None:
        rows = self._db.execute(
            "SELECT * FROM categories WHERE name = %s AND business_id = %s",
            (name, str(business_id)),
        )
        return self._row_to_category(rows[0]) if rows else None

    def list_by_business(self, business_id: UUID) -> Iterable[Category]:
        rows = self._db.execute(
            "SELECT * FROM categories WHERE business_id = %s ORDER BY name",
            (str(business_id),),
        )
        return [self._row_to_category(row) for row in rows]

    def delete(self, category_id: UUID) -> None:
        key = (str(category_id),)
        with self._db.atomic():
            self._db.execute(
                "UPDATE transactions SET category_id = NULL WHERE category_id = %s", key
            )
            self._db.execute("DELETE FROM categories WHERE id = %s", key)

    def _row_to_category(self, row: Any) -> Category:
        return Category(
            business_id=UUID(row["business_id"]),
            name=row["name"],
            id=UUID(row["id"]),
            category_type=TransactionType(row["category_type"])
            if row["category_type"]
            else None,
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class PostgresTransactionRepository(TransactionRepository):
    """PostgreSQL implementation of TransactionRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, txn: Transaction) -> None:
        with self._db.atomic():
            self._db.execute(
                """
                INSERT INTO transactions (id, business_id, transaction_date, description,
                                          amount, currency, transaction_type,
                                          ledger_account_id, category_id, is_reconciled,
                                          reference_number, notes, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    str(txn.id),
                    str(txn.business_id),
                    txn.transaction_date.isoformat(),
                    txn.description,
                    txn.amount.quantized().amount,
                    txn.amount.currency.value,
                    txn.transaction_type.value,
                    str(txn.ledger_account_id),
                    str(txn.category_id) if txn.category_id else None,
                    txn.is_reconciled,
                    txn.reference_number,
                    txn.notes,
                    txn.created_at.isoformat(),
                    txn.updated_at.isoformat(),
                ),
            )
            for entry in txn.journal_entries:
                self._db.execute(
                    """
                    INSERT INTO journal_entries (id, business_id, transaction_id,
                                                 ledger_account_id, entry_date, entry_number,
                                                 description, debit_amount, credit_amount,
                                                 currency, entry_type, is_posted, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(entry.id),
                        str(entry.business_id),
                        str(txn.id),
                        str(entry.ledger_account_id),
                        entry.entry_date.isoformat(),
                        entry.entry_number,
                        entry.description,
                        entry.debit_amount.quantized().amount,
                        entry.credit_amount.quantized().amount,
                        entry.debit_amount.currency.value,
                        entry.entry_type.value,
                        entry.is_posted,
                        entry.created_at.isoformat(),
                    ),
                )

    def get(self, txn_id: UUID, for_update: bool = False) -> Transaction | None:
        query = "SELECT * FROM transactions WHERE id = %s"
        if for_update:
            query += " FOR UPDATE"
        rows = self._db.execute(query, (str(txn_id),))
        return self._row_to_transaction(rows[0]) if rows else None

    def list_by_business(
        self,
        business_id: UUID,
        transaction_type: TransactionType | None = None,
        account_id: UUID | None = None,
        is_reconciled: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[Transaction]:
        query = "SELECT * FROM transactions t WHERE t.business_id = %s"
        params: list[Any] = [str(business_id)]

        if transaction_type is not None:
            query += " AND t.transaction_type = %s"
            params.append(transaction_type.value)
        if account_id is not None:
            query += """
                AND (t.ledger_account_id = %s OR EXISTS (
                    SELECT 1 FROM journal_entries e
                    WHERE e.transaction_id = t.id AND e.ledger_account_id = %s
                ))
            """
            params.extend([str(account_id), str(account_id)])
        if is_reconciled is not None:
            query += " AND t.is_reconciled = %s"
            params.append(is_reconciled)
        if start_date is not None:
            query += " AND t.transaction_date >= %s"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND t.transaction_date <= %s"
            params.append(end_date.isoformat())

        query += " ORDER BY t.transaction_date DESC, t.created_at DESC"
        rows = self._db.execute(query, params)
        return [self._row_to_transaction(row) for row in rows]

    def update(self, txn: Transaction) -> None:
        self._db.execute(
            """
            UPDATE transactions SET
                description = %s,
                category_id = %s,
                is_reconciled = %s,
                reference_number = %s,
                notes = %s,
                updated_at = %s
            WHERE id = %s
            """,
            (
                txn.description,
                str(txn.category_id) if txn.category_id else None,
                txn.is_reconciled,
                txn.reference_number,
                txn.notes,
                txn.updated_at.isoformat(),
                str(txn.id),
            ),
        )

    def delete(self, txn_id: UUID) -> None:
        key = (str(txn_id),)
        with self._db.atomic():
            self._db.execute("DELETE FROM journal_entries WHERE transaction_id = %s", key)
            deleted = self._db.execute(
                "DELETE FROM transactions WHERE id = %s RETURNING id", key
            )
            if not deleted:
                raise TransactionNotFoundError(txn_id)

    def list_entries_by_account(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        posted_only: bool = True,
    ) -> Iterable[JournalEntry]:
        query = "SELECT * FROM journal_entries WHERE ledger_account_id = %s"
        params: list[Any] = [str(account_id)]
        if posted_only:
            query += " AND is_posted"
        if start_date is not None:
            query += " AND entry_date >= %s"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND entry_date <= %s"
            params.append(end_date.isoformat())
        query += " ORDER BY entry_date, entry_number, created_at"
        rows = self._db.execute(query, params)
        return [self._row_to_entry(row) for row in rows]

    def list_entries_by_business(
        self, business_id: UUID, as_of_date: date | None = None
    ) -> Iterable[JournalEntry]:
        query = "SELECT * FROM journal_entries WHERE business_id = %s AND is_posted"
        params: list[Any] = [str(business_id)]
        if as_of_date is not None:
            query += " AND entry_date <= %s"
            params.append(as_of_date.isoformat())
        query += " ORDER BY entry_date, entry_number"
        rows = self._db.execute(query, params)
        return [self._row_to_entry(row) for row in rows]

    def list_entry_numbers(self, business_id: UUID) -> list[str]:
        rows = self._db.execute(
            "SELECT DISTINCT entry_number FROM journal_entries WHERE business_id = %s",
            (str(business_id),),
        )
        return [row["entry_number"] for row in rows]

    def list_entries(
        self,
        business_id: UUID,
        account_id: UUID | None = None,
        transaction_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[JournalEntry]:
        query = "SELECT * FROM journal_entries WHERE business_id = %s"
        params: list[Any] = [str(business_id)]
        if account_id is not None:
            query += " AND ledger_account_id = %s"
            params.append(str(account_id))
        if transaction_id is not None:
            query += " AND transaction_id = %s"
            params.append(str(transaction_id))
        if start_date is not None:
            query += " AND entry_date >= %s"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND entry_date <= %s"
            params.append(end_date.isoformat())
        query += " ORDER BY entry_date, entry_number, debit_amount DESC"
        rows = self._db.execute(query, params)
        return [self._row_to_entry(row) for row in rows]

    def _row_to_transaction(self, row: Any) -> Transaction:
        entry_rows = self._db.execute(
            """
            SELECT * FROM journal_entries WHERE transaction_id = %s
            ORDER BY debit_amount DESC
            """,
            (row["id"],),
        )
        return Transaction(
            business_id=UUID(row["business_id"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            description=row["description"],
            amount=_money(row["amount"], row["currency"]),
            transaction_type=TransactionType(row["transaction_type"]),
            ledger_account_id=UUID(row["ledger_account_id"]),
            id=UUID(row["id"]),
            category_id=UUID(row["category_id"]) if row["category_id"] else None,
            is_reconciled=row["is_reconciled"],
            reference_number=row["reference_number"],
            notes=row["notes"],
            journal_entries=[self._row_to_entry(entry_row) for entry_row in entry_rows],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_entry(self, row: Any) -> JournalEntry:
        return JournalEntry(
            business_id=UUID(row["business_id"]),
            transaction_id=UUID(row["transaction_id"]),
            ledger_account_id=UUID(row["ledger_account_id"]),
            entry_date=date.fromisoformat(row["entry_date"]),
            entry_number=row["entry_number"],
            id=UUID(row["id"]),
            description=row["description"],
            debit_amount=_money(row["debit_amount"], row["currency"]),
            credit_amount=_money(row["credit_amount"], row["currency"]),
            entry_type=EntryType(row["entry_type"]),
            is_posted=row["is_posted"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class PostgresEntrySequenceRepository(EntrySequenceRepository):
    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def allocate(self, business_id: UUID, count: int = 1) -> int:
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        key = str(business_id)
        with self._db.atomic():
            if not self._db.execute(
                "SELECT last_value FROM entry_sequences WHERE business_id = %s", (key,)
            ):
                self._seed(business_id)
            rows = self._db.execute(
                """
                UPDATE entry_sequences SET last_value = last_value + %s
                WHERE business_id = %s
                RETURNING last_value
                """,
                (count, key),
            )
        return int(rows[0]["last_value"]) - count + 1

    def current(self, business_id: UUID) -> int:
        rows = self._db.execute(
            "SELECT last_value FROM entry_sequences WHERE business_id = %s",
            (str(business_id),),
        )
        return int(rows[0]["last_value"]) if rows else 0

    def _seed(self, business_id: UUID) -> None:
        rows = self._db.execute(
            "SELECT DISTINCT entry_number FROM journal_entries WHERE business_id = %s",
            (str(business_id),),
        )
        seed = highest_entry_number([row["entry_number"] for row in rows])
        self._db.execute(
            """
            INSERT INTO entry_sequences (business_id, last_value) VALUES (%s, %s)
            ON CONFLICT (business_id) DO NOTHING
            """,
            (str(business_id), seed),
        )
        logger.info("entry_sequence_seeded", business_id=str(business_id), seed=seed)
