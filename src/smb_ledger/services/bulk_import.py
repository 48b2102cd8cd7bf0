"""Bulk import of transaction rows.

Rows are validated one by one, then written in fixed-size batches. Each batch
is one atomic scope: it reserves a contiguous block of entry numbers, inserts
every transaction and applies one netted balance increment per account.
A failed batch rolls back alone; rows in other batches are unaffected.
"""

from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from smb_ledger.domain.balance import balance_delta
from smb_ledger.domain.entities import Account, Category
from smb_ledger.domain.posting_rules import (
    PostingPolicy,
    build_journal_entries,
    validate_amount,
)
from smb_ledger.domain.transactions import Transaction
from smb_ledger.domain.value_objects import Money, TransactionType
from smb_ledger.exceptions import (
    AccountNotFoundError,
    BusinessNotFoundError,
    CategoryNotFoundError,
    InvalidAmountError,
    InvalidTransactionTypeError,
    SMBLedgerError,
    ValidationError,
)
from smb_ledger.logging_config import LogContext, get_logger
from smb_ledger.parsers.csv_parser import (
    CSVParser,
    ImportRow,
    parse_amount,
    parse_date,
)
from smb_ledger.repositories.interfaces import (
    AccountRepository,
    BusinessRepository,
    CategoryRepository,
    LedgerDatabase,
    TransactionRepository,
)
from smb_ledger.services.interfaces import (
    BulkImportResult,
    BulkImportService,
    EntryNumberingService,
)

logger = get_logger(__name__)


class AccountIndex:
    """In-memory lookup of a business's accounts by id, code or name."""

    def __init__(self, accounts: list[Account]) -> None:
        self.by_id = {account.id: account for account in accounts}
        self.by_code = {account.code: account for account in accounts}
        self.by_name = {account.name.lower(): account for account in accounts}

    def resolve(self, ref: str) -> Account | None:
        ref = ref.strip()
        try:
            account = self.by_id.get(UUID(ref))
        except ValueError:
            account = None
        return account or self.by_code.get(ref) or self.by_name.get(ref.lower())


@dataclass
class _PreparedRow:
    row_number: int
    transaction: Transaction
    contra_account_id: UUID


class BulkImportServiceImpl(BulkImportService):
    def __init__(
        self,
        database: LedgerDatabase,
        business_repo: BusinessRepository,
        account_repo: AccountRepository,
        category_repo: CategoryRepository,
        transaction_repo: TransactionRepository,
        entry_numbers: EntryNumberingService,
        policy: PostingPolicy | None = None,
        batch_size: int = 50,
        batch_timeout_seconds: float = 60.0,
        default_cash_account_code: str = "1000",
        default_revenue_account_code: str = "4000",
        default_expense_account_code: str = "5000",
        parser: CSVParser | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._db = database
        self._business_repo = business_repo
        self._account_repo = account_repo
        self._category_repo = category_repo
        self._transaction_repo = transaction_repo
        self._entry_numbers = entry_numbers
        self._policy = policy or PostingPolicy()
        self._batch_size = batch_size
        self._batch_timeout = batch_timeout_seconds
        self._default_cash_code = default_cash_account_code
        self._default_contra_codes = {
            TransactionType.INCOME: default_revenue_account_code,
            TransactionType.EXPENSE: default_expense_account_code,
        }
        self._parser = parser or CSVParser()

    def bulk_import(self, business_id: UUID, rows: list[ImportRow]) -> BulkImportResult:
        """Validate and record many transactions with partial success.

        Args:
            business_id: Business receiving the transactions
            rows: Raw rows; ``row_number`` defaults to the 1-based position

        Returns:
            Counts, ``"Row N: reason"`` messages for rejected rows, one message
            per failed batch, and the ids of the stored transactions

        Raises:
            BusinessNotFoundError: If the business does not exist
        """
        if self._business_repo.get(business_id) is None:
            raise BusinessNotFoundError(business_id)

        result = BulkImportResult()
        with LogContext(business_id=str(business_id)):
            accounts = AccountIndex(list(self._account_repo.list_by_business(business_id)))
            categories = list(self._category_repo.list_by_business(business_id))

            prepared: list[_PreparedRow] = []
            for position, row in enumerate(rows, start=1):
                row_number = row.row_number if row.row_number is not None else position
                try:
                    prepared.append(
                        self._prepare_row(business_id, row, row_number, accounts, categories)
                    )
                except SMBLedgerError as e:
                    result.failed += 1
                    result.errors.append(f"Row {row_number}: {e.message}")

            for start in range(0, len(prepared), self._batch_size):
                batch = prepared[start : start + self._batch_size]
                try:
                    self._commit_batch(business_id, batch, accounts)
                except SMBLedgerError as e:
                    first, last = batch[0].row_number, batch[-1].row_number
                    result.failed += len(batch)
                    result.errors.append(
                        f"Rows {first}-{last}: batch rolled back ({e.message})"
                    )
                    logger.error(
                        "bulk_import_batch_failed",
                        first_row=first,
                        last_row=last,
                        rows=len(batch),
                        error=e.message,
                    )
                    continue
                result.succeeded += len(batch)
                result.transaction_ids.extend(item.transaction.id for item in batch)

            logger.info(
                "bulk_import_completed",
                rows=len(rows),
                succeeded=result.succeeded,
                failed=result.failed,
            )
        return result

    def import_csv(self, business_id: UUID, path: str | Path) -> BulkImportResult:
        parsed = self._parser.parse(path)
        result = self.bulk_import(business_id, parsed.rows)
        result.failed += len(parsed.errors)
        result.errors = parsed.errors + result.errors
        return result

    def _prepare_row(
        self,
        business_id: UUID,
        row: ImportRow,
        row_number: int,
        accounts: AccountIndex,
        categories: list[Category],
    ) -> _PreparedRow:
        missing = [
            name
            for name, value in (
                ("date", row.date),
                ("description", row.description),
                ("amount", row.amount),
                ("type", row.transaction_type),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields ({', '.join(missing)})")

        transaction_date = parse_date(row.date)
        if transaction_date is None:
            raise ValidationError(f"Invalid date '{row.date}'")

        try:
            transaction_type = TransactionType(row.transaction_type.strip().upper())
        except ValueError:
            raise InvalidTransactionTypeError(row.transaction_type)

        value = parse_amount(row.amount)
        if value is None:
            raise InvalidAmountError(row.amount, "not a number")

        main = self._resolve(accounts, row.account, self._default_cash_code)
        contra_default = self._default_contra_codes.get(transaction_type)
        if not row.contra_account and contra_default is None:
            raise ValidationError(
                f"Contra account is required for {transaction_type.value} rows"
            )
        contra = self._resolve(accounts, row.contra_account, contra_default)

        amount = validate_amount(Money(value, main.currency))
        self._policy.check(business_id, transaction_type, main, contra)

        category_id = None
        if row.category:
            category_id = self._resolve_category(categories, row.category).id

        txn = Transaction(
            business_id=business_id,
            transaction_date=transaction_date,
            description=row.description.strip(),
            amount=amount,
            transaction_type=transaction_type,
            ledger_account_id=main.id,
            category_id=category_id,
            reference_number=row.reference_number,
            notes=row.notes,
        )
        return _PreparedRow(row_number, txn, contra.id)

    def _resolve(
        self, accounts: AccountIndex, ref: str | None, default_code: str | None
    ) -> Account:
        if ref:
            account = accounts.resolve(ref)
            if account is None:
                raise AccountNotFoundError(ref)
            return account
        account = accounts.by_code.get(default_code or "")
        if account is None:
            raise AccountNotFoundError(f"default account {default_code}")
        return account

    def _resolve_category(self, categories: list[Category], ref: str) -> Category:
        wanted = ref.strip().lower()
        for category in categories:
            if category.name.lower() == wanted or str(category.id) == wanted:
                return category
        raise CategoryNotFoundError(ref)

    def _commit_batch(
        self, business_id: UUID, batch: list[_PreparedRow], accounts: AccountIndex
    ) -> None:
        with self._db.atomic(timeout=self._batch_timeout):
            entry_numbers = self._entry_numbers.allocate(business_id, len(batch))
            deltas: dict[UUID, Money] = {}
            for item, entry_number in zip(batch, entry_numbers):
                txn = item.transaction
                txn.journal_entries = build_journal_entries(
                    txn, item.contra_account_id, entry_number
                )
                txn.validate()
                self._transaction_repo.add(txn)
                for entry in txn.journal_entries:
                    account = accounts.by_id[entry.ledger_account_id]
                    delta = balance_delta(
                        account.normal_balance, entry.debit_amount, entry.credit_amount
                    )
                    if account.id in deltas:
                        deltas[account.id] = deltas[account.id] + delta
                    else:
                        deltas[account.id] = delta

            for account_id, delta in deltas.items():
                if not delta.is_zero:
                    self._account_repo.increment_balance(account_id, delta)
