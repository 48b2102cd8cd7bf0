"""SQLite implementations of repository interfaces.

Money columns hold integer cents so balance increments stay exact inside
SQL. The connection runs in autocommit mode; multi-statement work is grouped
with ``SQLiteDatabase.atomic()``.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from uuid import UUID

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

# Virtual machine instructions between deadline checks
_PROGRESS_HANDLER_STEPS = 1000


class SQLiteDatabase(LedgerDatabase):
    """SQLite database connection manager."""

    def __init__(
        self,
        path: str | Path = ":memory:",
        check_same_thread: bool = True,
        busy_timeout: float = 30.0,
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._busy_timeout = busy_timeout
        self._connection: sqlite3.Connection | None = None
        self._depth = 0
        self._deadline: float | None = None
        self._timed_out = False

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path,
                check_same_thread=self._check_same_thread,
                timeout=self._busy_timeout,
                isolation_level=None,
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @property
    def in_atomic(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self, timeout: float | None = None) -> Iterator[None]:
        conn = self.get_connection()
        outermost = self._depth == 0
        savepoint = f"sp_{self._depth}"

        try:
            if outermost:
                # Take the write lock up front so concurrent writers queue
                # on busy_timeout instead of failing at commit.
                conn.execute("BEGIN IMMEDIATE")
                if timeout is not None:
                    self._start_deadline(conn, timeout)
            else:
                conn.execute(f"SAVEPOINT {savepoint}")
        except sqlite3.Error as e:
            raise AtomicityFailure(str(e)) from e

        self._depth += 1
        try:
            yield
            if outermost and self._deadline_passed():
                raise AtomicTimeoutError(timeout or 0)
        except BaseException as exc:
            self._depth -= 1
            self._rollback(conn, outermost, savepoint)
            if outermost and self._timed_out and not isinstance(exc, AtomicTimeoutError):
                self._clear_deadline(conn)
                raise AtomicTimeoutError(timeout or 0) from exc
            if outermost:
                self._clear_deadline(conn)
            # OverflowError comes from binding integers beyond 64 bits
            if isinstance(exc, (sqlite3.Error, OverflowError)):
                raise AtomicityFailure(str(exc)) from exc
            raise

        self._depth -= 1
        try:
            if outermost:
                conn.execute("COMMIT")
            else:
                conn.execute(f"RELEASE SAVEPOINT {savepoint}")
        except sqlite3.Error as e:
            self._rollback(conn, outermost, savepoint)
            raise AtomicityFailure(str(e)) from e
        finally:
            if outermost:
                self._clear_deadline(conn)

    def _rollback(self, conn: sqlite3.Connection, outermost: bool, savepoint: str) -> None:
        # The interrupt flag has to be cleared or the rollback itself is aborted
        conn.set_progress_handler(None, 0)
        if outermost:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.warning("atomic_scope_rolled_back", database="sqlite")
        else:
            # An interrupted write may already have aborted the whole transaction
            if conn.in_transaction:
                conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            if self._deadline is not None:
                conn.set_progress_handler(self._check_deadline, _PROGRESS_HANDLER_STEPS)

    def _start_deadline(self, conn: sqlite3.Connection, timeout: float) -> None:
        self._deadline = time.monotonic() + timeout
        self._timed_out = False
        conn.set_progress_handler(self._check_deadline, _PROGRESS_HANDLER_STEPS)

    def _check_deadline(self) -> int:
        if self._deadline is not None and time.monotonic() > self._deadline:
            self._timed_out = True
            return 1
        return 0

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() > self._deadline

    def _clear_deadline(self, conn: sqlite3.Connection) -> None:
        self._deadline = None
        self._timed_out = False
        conn.set_progress_handler(None, 0)

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS businesses (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                currency TEXT NOT NULL DEFAULT 'USD',
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL,
                code TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                account_type TEXT NOT NULL,
                sub_type TEXT,
                normal_balance TEXT NOT NULL,
                current_balance_cents INTEGER NOT NULL DEFAULT 0,
                currency TEXT NOT NULL DEFAULT 'USD',
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(business_id, code),
                FOREIGN KEY (business_id) REFERENCES businesses(id),
                CHECK (
                    (account_type IN ('ASSET', 'EXPENSE') AND normal_balance = 'DEBIT')
                    OR (account_type IN ('LIABILITY', 'EQUITY', 'REVENUE')
                        AND normal_balance = 'CREDIT')
                )
            );
            CREATE INDEX IF NOT EXISTS idx_accounts_business ON accounts(business_id);

            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL,
                name TEXT NOT NULL,
                category_type TEXT,
                description TEXT,
                created_at TEXT NOT NULL,
                UNIQUE(business_id, name),
                FOREIGN KEY (business_id) REFERENCES businesses(id)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL,
                transaction_date TEXT NOT NULL,
                description TEXT NOT NULL,
                amount_cents INTEGER NOT NULL CHECK (amount_cents > 0),
                currency TEXT NOT NULL DEFAULT 'USD',
                transaction_type TEXT NOT NULL,
                ledger_account_id TEXT NOT NULL,
                category_id TEXT,
                is_reconciled INTEGER NOT NULL DEFAULT 0,
                reference_number TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (business_id) REFERENCES businesses(id),
                FOREIGN KEY (ledger_account_id) REFERENCES accounts(id),
                FOREIGN KEY (category_id) REFERENCES categories(id)
            );
            CREATE INDEX IF NOT EXISTS idx_transactions_business_date
                ON transactions(business_id, transaction_date);

            CREATE TABLE IF NOT EXISTS journal_entries (
                id TEXT PRIMARY KEY,
                business_id TEXT NOT NULL,
                transaction_id TEXT NOT NULL,
                ledger_account_id TEXT NOT NULL,
                entry_date TEXT NOT NULL,
                entry_number TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                debit_cents INTEGER NOT NULL DEFAULT 0 CHECK (debit_cents >= 0),
                credit_cents INTEGER NOT NULL DEFAULT 0 CHECK (credit_cents >= 0),
                currency TEXT NOT NULL DEFAULT 'USD',
                entry_type TEXT NOT NULL DEFAULT 'STANDARD',
                is_posted INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                FOREIGN KEY (business_id) REFERENCES businesses(id),
                FOREIGN KEY (transaction_id) REFERENCES transactions(id),
                FOREIGN KEY (ledger_account_id) REFERENCES accounts(id)
            );
            CREATE INDEX IF NOT EXISTS idx_journal_entries_transaction
                ON journal_entries(transaction_id);
            CREATE INDEX IF NOT EXISTS idx_journal_entries_account
                ON journal_entries(ledger_account_id, entry_date);
            CREATE INDEX IF NOT EXISTS idx_journal_entries_business
                ON journal_entries(business_id, entry_number);

            CREATE TABLE IF NOT EXISTS entry_sequences (
                business_id TEXT PRIMARY KEY,
                last_value INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (business_id) REFERENCES businesses(id)
            );
            """
        )

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._depth = 0


def _money(cents: int, currency: str) -> Money:
    return Money.from_minor_units(cents, currency)


class SQLiteBusinessRepository(BusinessRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, business: Business) -> None:
        conn = self._db.get_connection()
        conn.execute(
            "INSERT INTO businesses (id, name, currency, created_at) VALUES (?, ?, ?, ?)",
            (
                str(business.id),
                business.name,
                business.currency.value,
                business.created_at.isoformat(),
            ),
        )

    def get(self, business_id: UUID) -> Business | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM businesses WHERE id = ?", (str(business_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_business(row)

    def get_by_name(self, name: str) -> Business | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM businesses WHERE name = ?", (name,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_business(row)

    def list_all(self) -> Iterable[Business]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM businesses ORDER BY name").fetchall()
        return [self._row_to_business(row) for row in rows]

    def delete(self, business_id: UUID) -> None:
        key = (str(business_id),)
        with self._db.atomic():
            conn = self._db.get_connection()
            conn.execute("DELETE FROM journal_entries WHERE business_id = ?", key)
            conn.execute("DELETE FROM transactions WHERE business_id = ?", key)
            conn.execute("DELETE FROM categories WHERE business_id = ?", key)
            conn.execute("DELETE FROM accounts WHERE business_id = ?", key)
            conn.execute("DELETE FROM entry_sequences WHERE business_id = ?", key)
            conn.execute("DELETE FROM businesses WHERE id = ?", key)

    def _row_to_business(self, row: sqlite3.Row) -> Business:
        return Business(
            name=row["name"],
            id=UUID(row["id"]),
            currency=Currency(row["currency"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteAccountRepository(AccountRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO accounts (id, business_id, code, name, description, account_type,
                                  sub_type, normal_balance, current_balance_cents, currency,
                                  is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
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
                account.current_balance.to_minor_units(),
                account.currency.value,
                1 if account.is_active else 0,
                account.created_at.isoformat(),
                account.updated_at.isoformat(),
            ),
        )

    def get(self, account_id: UUID) -> Account | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (str(account_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_account(row)

    def get_by_code(self, code: str, business_id: UUID) -> Account | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE code = ? AND business_id = ?",
            (code, str(business_id)),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_account(row)

    def list_by_business(
        self, business_id: UUID, active_only: bool = False
    ) -> Iterable[Account]:
        conn = self._db.get_connection()
        query = "SELECT * FROM accounts WHERE business_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY code"
        rows = conn.execute(query, (str(business_id),)).fetchall()
        return [self._row_to_account(row) for row in rows]

    def update(self, account: Account) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE accounts SET
                code = ?,
                name = ?,
                description = ?,
                sub_type = ?,
                is_active = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                account.code,
                account.name,
                account.description,
                account.sub_type.value if account.sub_type else None,
                1 if account.is_active else 0,
                account.updated_at.isoformat(),
                str(account.id),
            ),
        )

    def increment_balance(self, account_id: UUID, delta: Money) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE accounts
            SET current_balance_cents = current_balance_cents + ?
            WHERE id = ?
            """,
            (delta.to_minor_units(), str(account_id)),
        )

    def count_references(self, account_id: UUID) -> int:
        conn = self._db.get_connection()
        key = str(account_id)
        row = conn.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM transactions WHERE ledger_account_id = ?)
                + (SELECT COUNT(*) FROM journal_entries WHERE ledger_account_id = ?)
                AS refs
            """,
            (key, key),
        ).fetchone()
        return int(row["refs"])

    def delete(self, account_id: UUID) -> None:
        conn = self._db.get_connection()
        conn.execute("DELETE FROM accounts WHERE id = ?", (str(account_id),))

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            business_id=UUID(row["business_id"]),
            code=row["code"],
            name=row["name"],
            account_type=AccountType(row["account_type"]),
            id=UUID(row["id"]),
            sub_type=AccountSubType(row["sub_type"]) if row["sub_type"] else None,
            normal_balance=BalanceType(row["normal_balance"]),
            current_balance=_money(row["current_balance_cents"], row["currency"]),
            currency=Currency(row["currency"]),
            description=row["description"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteCategoryRepository(CategoryRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, category: Category) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO categories (id, business_id, name, category_type, description,
                                    created_at)
            VALUES (?, ?, ?, ?, ?, ?)
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
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (str(category_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_category(row)

    def get_by_name(self, name: str, business_id: UUID) -> Category | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE name = ? AND business_id = ?",
            (name, str(business_id)),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_category(row)

    def list_by_business(self, business_id: UUID) -> Iterable[Category]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM categories WHERE business_id = ? ORDER BY name",
            (str(business_id),),
        ).fetchall()
        return [self._row_to_category(row) for row in rows]

    def delete(self, category_id: UUID) -> None:
        key = (str(category_id),)
        with self._db.atomic():
            conn = self._db.get_connection()
            conn.execute(
                "UPDATE transactions SET category_id = NULL WHERE category_id = ?", key
            )
            conn.execute("DELETE FROM categories WHERE id = ?", key)

    def _row_to_category(self, row: sqlite3.Row) -> Category:
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


class SQLiteTransactionRepository(TransactionRepository):
    """SQLite implementation of TransactionRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, txn: Transaction) -> None:
        with self._db.atomic():
            conn = self._db.get_connection()
            conn.execute(
                """
                INSERT INTO transactions (id, business_id, transaction_date, description,
                                          amount_cents, currency, transaction_type,
                                          ledger_account_id, category_id, is_reconciled,
                                          reference_number, notes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(txn.id),
                    str(txn.business_id),
                    txn.transaction_date.isoformat(),
                    txn.description,
                    txn.amount.to_minor_units(),
                    txn.amount.currency.value,
                    txn.transaction_type.value,
                    str(txn.ledger_account_id),
                    str(txn.category_id) if txn.category_id else None,
                    1 if txn.is_reconciled else 0,
                    txn.reference_number,
                    txn.notes,
                    txn.created_at.isoformat(),
                    txn.updated_at.isoformat(),
                ),
            )
            for entry in txn.journal_entries:
                conn.execute(
                    """
                    INSERT INTO journal_entries (id, business_id, transaction_id,
                                                 ledger_account_id, entry_date, entry_number,
                                                 description, debit_cents, credit_cents,
                                                 currency, entry_type, is_posted, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(entry.id),
                        str(entry.business_id),
                        str(txn.id),
                        str(entry.ledger_account_id),
                        entry.entry_date.isoformat(),
                        entry.entry_number,
                        entry.description,
                        entry.debit_amount.to_minor_units(),
                        entry.credit_amount.to_minor_units(),
                        entry.debit_amount.currency.value,
                        entry.entry_type.value,
                        1 if entry.is_posted else 0,
                        entry.created_at.isoformat(),
                    ),
                )

    def get(self, txn_id: UUID, for_update: bool = False) -> Transaction | None:
        # Inside atomic() BEGIN IMMEDIATE already holds the write lock
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (str(txn_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_transaction(row)

    def list_by_business(
        self,
        business_id: UUID,
        transaction_type: TransactionType | None = None,
        account_id: UUID | None = None,
        is_reconciled: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[Transaction]:
        conn = self._db.get_connection()
        query = "SELECT * FROM transactions t WHERE t.business_id = ?"
        params: list[str | int] = [str(business_id)]

        if transaction_type is not None:
            query += " AND t.transaction_type = ?"
            params.append(transaction_type.value)
        if account_id is not None:
            query += """
                AND (t.ledger_account_id = ? OR EXISTS (
                    SELECT 1 FROM journal_entries e
                    WHERE e.transaction_id = t.id AND e.ledger_account_id = ?
                ))
            """
            params.extend([str(account_id), str(account_id)])
        if is_reconciled is not None:
            query += " AND t.is_reconciled = ?"
            params.append(1 if is_reconciled else 0)
        if start_date is not None:
            query += " AND t.transaction_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND t.transaction_date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY t.transaction_date DESC, t.created_at DESC"
        rows = conn.execute(query, params).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def update(self, txn: Transaction) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE transactions SET
                description = ?,
                category_id = ?,
                is_reconciled = ?,
                reference_number = ?,
                notes = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                txn.description,
                str(txn.category_id) if txn.category_id else None,
                1 if txn.is_reconciled else 0,
                txn.reference_number,
                txn.notes,
                txn.updated_at.isoformat(),
                str(txn.id),
            ),
        )

    def delete(self, txn_id: UUID) -> None:
        key = (str(txn_id),)
        with self._db.atomic():
            conn = self._db.get_connection()
            conn.execute("DELETE FROM journal_entries WHERE transaction_id = ?", key)
            cursor = conn.execute("DELETE FROM transactions WHERE id = ?", key)
            if cursor.rowcount == 0:
                raise TransactionNotFoundError(txn_id)

    def list_entries_by_account(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        posted_only: bool = True,
    ) -> Iterable[JournalEntry]:
        conn = self._db.get_connection()
        query = "SELECT * FROM journal_entries WHERE ledger_account_id = ?"
        params: list[str] = [str(account_id)]

        if posted_only:
            query += " AND is_posted = 1"
        if start_date is not None:
            query += " AND entry_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND entry_date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY entry_date, entry_number, created_at"
        rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_entries_by_business(
        self, business_id: UUID, as_of_date: date | None = None
    ) -> Iterable[JournalEntry]:
        conn = self._db.get_connection()
        query = "SELECT * FROM journal_entries WHERE business_id = ? AND is_posted = 1"
        params: list[str] = [str(business_id)]
        if as_of_date is not None:
            query += " AND entry_date <= ?"
            params.append(as_of_date.isoformat())
        query += " ORDER BY entry_date, entry_number"
        rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_entry_numbers(self, business_id: UUID) -> list[str]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT DISTINCT entry_number FROM journal_entries WHERE business_id = ?",
            (str(business_id),),
        ).fetchall()
        return [row["entry_number"] for row in rows]

    def list_entries(
        self,
        business_id: UUID,
        account_id: UUID | None = None,
        transaction_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[JournalEntry]:
        conn = self._db.get_connection()
        query = "SELECT * FROM journal_entries WHERE business_id = ?"
        params: list[str] = [str(business_id)]
        if account_id is not None:
            query += " AND ledger_account_id = ?"
            params.append(str(account_id))
        if transaction_id is not None:
            query += " AND transaction_id = ?"
            params.append(str(transaction_id))
        if start_date is not None:
            query += " AND entry_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND entry_date <= ?"
            params.append(end_date.isoformat())
        query += " ORDER BY entry_date, entry_number, debit_cents DESC"
        rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        conn = self._db.get_connection()
        entry_rows = conn.execute(
            """
            SELECT * FROM journal_entries WHERE transaction_id = ?
            ORDER BY debit_cents DESC
            """,
            (row["id"],),
        ).fetchall()
        return Transaction(
            business_id=UUID(row["business_id"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            description=row["description"],
            amount=_money(row["amount_cents"], row["currency"]),
            transaction_type=TransactionType(row["transaction_type"]),
            ledger_account_id=UUID(row["ledger_account_id"]),
            id=UUID(row["id"]),
            category_id=UUID(row["category_id"]) if row["category_id"] else None,
            is_reconciled=bool(row["is_reconciled"]),
            reference_number=row["reference_number"],
            notes=row["notes"],
            journal_entries=[self._row_to_entry(entry_row) for entry_row in entry_rows],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_entry(self, row: sqlite3.Row) -> JournalEntry:
        return JournalEntry(
            business_id=UUID(row["business_id"]),
            transaction_id=UUID(row["transaction_id"]),
            ledger_account_id=UUID(row["ledger_account_id"]),
            entry_date=date.fromisoformat(row["entry_date"]),
            entry_number=row["entry_number"],
            id=UUID(row["id"]),
            description=row["description"],
            debit_amount=_money(row["debit_cents"], row["currency"]),
            credit_amount=_money(row["credit_cents"], row["currency"]),
            entry_type=EntryType(row["entry_type"]),
            is_posted=bool(row["is_posted"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteEntrySequenceRepository(EntrySequenceRepository):
    """Per-business counter row advanced with a single UPDATE ... RETURNING."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def allocate(self, business_id: UUID, count: int = 1) -> int:
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        conn = self._db.get_connection()
        key = str(business_id)
        with self._db.atomic():
            existing = conn.execute(
                "SELECT last_value FROM entry_sequences WHERE business_id = ?", (key,)
            ).fetchone()
            if existing is None:
                self._seed(conn, business_id)
            rows = conn.execute(
                """
                UPDATE entry_sequences SET last_value = last_value + ?
                WHERE business_id = ?
                RETURNING last_value
                """,
                (count, key),
            ).fetchall()
        return int(rows[0]["last_value"]) - count + 1

    def current(self, business_id: UUID) -> int:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT last_value FROM entry_sequences WHERE business_id = ?",
            (str(business_id),),
        ).fetchone()
        if row is None:
            return 0
        return int(row["last_value"])

    def _seed(self, conn: sqlite3.Connection, business_id: UUID) -> None:
        # Continue after whatever numbers already exist, legacy formats included
        rows = conn.execute(
            "SELECT DISTINCT entry_number FROM journal_entries WHERE business_id = ?",
            (str(business_id),),
        ).fetchall()
        seed = highest_entry_number([row["entry_number"] for row in rows])
        conn.execute(
            """
            INSERT INTO entry_sequences (business_id, last_value) VALUES (?, ?)
            ON CONFLICT(business_id) DO NOTHING
            """,
            (str(business_id), seed),
        )
        logger.info("entry_sequence_seeded", business_id=str(business_id), seed=seed)
