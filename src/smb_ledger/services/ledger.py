"""LedgerService implementation: recording, deleting and annotating transactions."""

from datetime import date
from uuid import UUID

from smb_ledger.domain.balance import balance_delta, reverse_delta
from smb_ledger.domain.entities import Account
from smb_ledger.domain.posting_rules import (
    PostingPolicy,
    build_journal_entries,
    validate_amount,
)
from smb_ledger.domain.transactions import Transaction
from smb_ledger.domain.value_objects import Money, TransactionType
from smb_ledger.exceptions import (
    AccountNotFoundError,
    CategoryNotFoundError,
    InvalidAccountError,
    InvalidAmountError,
    ReconciledTransactionError,
    TransactionNotFoundError,
)
from smb_ledger.logging_config import get_logger
from smb_ledger.repositories.interfaces import (
    AccountRepository,
    CategoryRepository,
    LedgerDatabase,
    TransactionRepository,
)
from smb_ledger.services.interfaces import EntryNumberingService, LedgerService

logger = get_logger(__name__)


class LedgerServiceImpl(LedgerService):
    """Double-entry transaction recorder and reversal path."""

    def __init__(
        self,
        database: LedgerDatabase,
        transaction_repo: TransactionRepository,
        account_repo: AccountRepository,
        category_repo: CategoryRepository,
        entry_numbers: EntryNumberingService,
        policy: PostingPolicy | None = None,
    ) -> None:
        self._db = database
        self._transaction_repo = transaction_repo
        self._account_repo = account_repo
        self._category_repo = category_repo
        self._entry_numbers = entry_numbers
        self._policy = policy or PostingPolicy()

    def record_transaction(
        self,
        business_id: UUID,
        transaction_date: date,
        description: str,
        amount: Money,
        transaction_type: TransactionType,
        main_account_id: UUID,
        contra_account_id: UUID,
        category_id: UUID | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        """Record one business event as a header plus two balanced entries.

        Args:
            business_id: Owning business
            transaction_date: Date of the event
            description: Free text shown on both journal lines
            amount: Positive amount with at most two decimal places
            transaction_type: INCOME, EXPENSE or TRANSFER
            main_account_id: Cash-like account the user picked
            contra_account_id: Offsetting account
            category_id: Optional reporting category
            reference_number: Optional external reference
            notes: Optional notes

        Returns:
            The stored transaction with its journal entries

        Raises:
            InvalidAmountError: If the amount is not positive or has sub-cent precision
            InvalidAccountError: If an account is missing, foreign, inactive or
                fails the role policy
            CategoryNotFoundError: If the category does not belong to the business
            AtomicityFailure: If storage fails; nothing is persisted
        """
        amount = validate_amount(amount)
        main = self._resolve_account(main_account_id)
        contra = self._resolve_account(contra_account_id)
        self._policy.check(business_id, transaction_type, main, contra)
        if amount.currency != main.currency:
            raise InvalidAmountError(
                str(amount.amount),
                f"currency {amount.currency.value} does not match "
                f"account currency {main.currency.value}",
            )
        if category_id is not None:
            self._check_category(business_id, category_id)

        txn = Transaction(
            business_id=business_id,
            transaction_date=transaction_date,
            description=description,
            amount=amount,
            transaction_type=transaction_type,
            ledger_account_id=main.id,
            category_id=category_id,
            reference_number=reference_number,
            notes=notes,
        )
        accounts = {main.id: main, contra.id: contra}

        with self._db.atomic():
            entry_number = self._entry_numbers.next_entry_number(business_id)
            txn.journal_entries = build_journal_entries(txn, contra.id, entry_number)
            txn.validate()
            self._transaction_repo.add(txn)
            for entry in txn.journal_entries:
                account = accounts[entry.ledger_account_id]
                self._account_repo.increment_balance(
                    account.id,
                    balance_delta(
                        account.normal_balance, entry.debit_amount, entry.credit_amount
                    ),
                )

        logger.info(
            "transaction_recorded",
            business_id=str(business_id),
            transaction_id=str(txn.id),
            entry_number=txn.entry_number,
            transaction_type=transaction_type.value,
            amount=str(amount.amount),
        )
        return txn

    def delete_transaction(self, transaction_id: UUID) -> None:
        """Reverse a transaction's balance effects and remove it.

        The transaction is re-read under lock inside the atomic scope, so a
        concurrent delete or reconcile is seen before any balance moves.

        Raises:
            TransactionNotFoundError: If the transaction does not exist
            ReconciledTransactionError: If the transaction is reconciled
            AtomicityFailure: If storage fails; the transaction is left intact
        """
        with self._db.atomic():
            txn = self._transaction_repo.get(transaction_id, for_update=True)
            if txn is None:
                raise TransactionNotFoundError(transaction_id)
            if txn.is_reconciled:
                logger.warning(
                    "transaction_delete_rejected",
                    transaction_id=str(transaction_id),
                    reason="reconciled",
                )
                raise ReconciledTransactionError(transaction_id)

            for entry in txn.journal_entries:
                account = self._account_repo.get(entry.ledger_account_id)
                if account is None:
                    raise AccountNotFoundError(entry.ledger_account_id)
                self._account_repo.increment_balance(
                    account.id,
                    reverse_delta(
                        account.normal_balance, entry.debit_amount, entry.credit_amount
                    ),
                )
            self._transaction_repo.delete(txn.id)

        logger.info(
            "transaction_deleted",
            business_id=str(txn.business_id),
            transaction_id=str(transaction_id),
            entry_number=txn.entry_number,
        )

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        txn = self._transaction_repo.get(transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)
        return txn

    def list_transactions(
        self,
        business_id: UUID,
        transaction_type: TransactionType | None = None,
        account_id: UUID | None = None,
        is_reconciled: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Transaction]:
        return list(
            self._transaction_repo.list_by_business(
                business_id,
                transaction_type=transaction_type,
                account_id=account_id,
                is_reconciled=is_reconciled,
                start_date=start_date,
                end_date=end_date,
            )
        )

    def update_transaction(
        self,
        transaction_id: UUID,
        description: str | None = None,
        category_id: UUID | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        is_reconciled: bool | None = None,
        clear_category: bool = False,
    ) -> Transaction:
        """Change non-financial fields. Amount, type, date and accounts are fixed.

        ``None`` leaves a field unchanged; pass ``clear_category=True`` to
        detach the category.
        """
        txn = self.get_transaction(transaction_id)
        if description is not None:
            txn.description = description
        if clear_category:
            txn.category_id = None
        elif category_id is not None:
            self._check_category(txn.business_id, category_id)
            txn.category_id = category_id
        if reference_number is not None:
            txn.reference_number = reference_number
        if notes is not None:
            txn.notes = notes
        if is_reconciled is not None:
            txn.is_reconciled = is_reconciled
        txn.touch()
        self._transaction_repo.update(txn)
        return txn

    def reconcile_transaction(self, transaction_id: UUID) -> Transaction:
        return self.update_transaction(transaction_id, is_reconciled=True)

    def unreconcile_transaction(self, transaction_id: UUID) -> Transaction:
        return self.update_transaction(transaction_id, is_reconciled=False)

    def _resolve_account(self, account_id: UUID) -> Account:
        account = self._account_repo.get(account_id)
        if account is None:
            raise InvalidAccountError(account_id, "account not found")
        return account

    def _check_category(self, business_id: UUID, category_id: UUID) -> None:
        category = self._category_repo.get(category_id)
        if category is None or category.business_id != business_id:
            raise CategoryNotFoundError(category_id)
