"""Read-only ledger reports: general ledger, trial balance, balance audit."""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from smb_ledger.domain.balance import balance_delta
from smb_ledger.domain.entities import Account
from smb_ledger.domain.transactions import JournalEntry
from smb_ledger.domain.value_objects import BalanceType, Money
from smb_ledger.exceptions import AccountNotFoundError, BusinessNotFoundError
from smb_ledger.repositories.interfaces import (
    AccountRepository,
    BusinessRepository,
    TransactionRepository,
)
from smb_ledger.services.interfaces import (
    BalanceDrift,
    GeneralLedgerLine,
    GeneralLedgerReport,
    ReportingService,
    TrialBalanceLine,
    TrialBalanceReport,
)


def _sum_deltas(account: Account, entries: list[JournalEntry]) -> Money:
    total = Money.zero(account.currency)
    for entry in entries:
        total = total + balance_delta(
            account.normal_balance, entry.debit_amount, entry.credit_amount
        )
    return total


class ReportingServiceImpl(ReportingService):
    """Implementation of ReportingService. Never writes to the ledger."""

    def __init__(
        self,
        business_repo: BusinessRepository,
        account_repo: AccountRepository,
        transaction_repo: TransactionRepository,
    ) -> None:
        self._business_repo = business_repo
        self._account_repo = account_repo
        self._transaction_repo = transaction_repo

    def general_ledger(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> GeneralLedgerReport:
        """Posted entries for one account with a running balance.

        The running balance starts from the account's balance on the day
        before ``start_date`` so that it always agrees with the stored
        balance when no end date is given.
        """
        account = self._account_repo.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        opening = Money.zero(account.currency)
        if start_date is not None:
            prior = list(
                self._transaction_repo.list_entries_by_account(
                    account_id, end_date=start_date - timedelta(days=1)
                )
            )
            opening = _sum_deltas(account, prior)

        entries = list(
            self._transaction_repo.list_entries_by_account(
                account_id, start_date=start_date, end_date=end_date
            )
        )

        balance = opening
        total_debits = Money.zero(account.currency)
        total_credits = Money.zero(account.currency)
        lines: list[GeneralLedgerLine] = []
        for entry in entries:
            balance = balance + balance_delta(
                account.normal_balance, entry.debit_amount, entry.credit_amount
            )
            total_debits = total_debits + entry.debit_amount
            total_credits = total_credits + entry.credit_amount
            lines.append(
                GeneralLedgerLine(
                    entry_date=entry.entry_date,
                    entry_number=entry.entry_number,
                    description=entry.description,
                    transaction_id=entry.transaction_id,
                    debit=entry.debit_amount,
                    credit=entry.credit_amount,
                    balance=balance,
                )
            )

        return GeneralLedgerReport(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            lines=lines,
            total_debits=total_debits,
            total_credits=total_credits,
            ending_balance=balance,
        )

    def trial_balance(
        self, business_id: UUID, as_of_date: date | None = None
    ) -> TrialBalanceReport:
        business = self._business_repo.get(business_id)
        if business is None:
            raise BusinessNotFoundError(business_id)
        as_of_date = as_of_date or date.today()

        entries_by_account: dict[UUID, list[JournalEntry]] = {}
        for entry in self._transaction_repo.list_entries_by_business(
            business_id, as_of_date=as_of_date
        ):
            entries_by_account.setdefault(entry.ledger_account_id, []).append(entry)

        zero = Money.zero(business.currency)
        lines: list[TrialBalanceLine] = []
        total_debits = zero
        total_credits = zero
        for account in self._account_repo.list_by_business(business_id, active_only=True):
            balance = _sum_deltas(account, entries_by_account.get(account.id, []))
            # Balance sits on the normal side, negative when the account is overdrawn
            if account.normal_balance == BalanceType.DEBIT:
                debit, credit = balance, zero
            else:
                debit, credit = zero, balance
            total_debits = total_debits + debit
            total_credits = total_credits + credit
            lines.append(
                TrialBalanceLine(
                    account_id=account.id,
                    account_code=account.code,
                    account_name=account.name,
                    account_type=account.account_type,
                    debit=debit,
                    credit=credit,
                )
            )

        return TrialBalanceReport(
            business_id=business_id,
            as_of_date=as_of_date,
            lines=lines,
            total_debits=total_debits,
            total_credits=total_credits,
        )

    def audit_balances(self, business_id: UUID) -> list[BalanceDrift]:
        """Accounts whose stored balance disagrees with their journal entries."""
        drifts: list[BalanceDrift] = []
        for account in self._account_repo.list_by_business(business_id):
            entries = list(self._transaction_repo.list_entries_by_account(account.id))
            computed = _sum_deltas(account, entries)
            if computed != account.current_balance:
                drifts.append(
                    BalanceDrift(
                        account_id=account.id,
                        account_code=account.code,
                        stored_balance=account.current_balance,
                        computed_balance=computed,
                    )
                )
        return drifts

    def list_journal_entries(
        self,
        business_id: UUID,
        account_id: UUID | None = None,
        transaction_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[JournalEntry]:
        """Journal entries of a business, oldest first, optionally filtered."""
        if self._business_repo.get(business_id) is None:
            raise BusinessNotFoundError(business_id)
        return list(
            self._transaction_repo.list_entries(
                business_id,
                account_id=account_id,
                transaction_id=transaction_id,
                start_date=start_date,
                end_date=end_date,
            )
        )
