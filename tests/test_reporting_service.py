"""Tests for ReportingService implementation."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from smb_ledger.domain.value_objects import Money, TransactionType
from smb_ledger.exceptions import AccountNotFoundError, BusinessNotFoundError


def usd(value: str) -> Money:
    return Money(Decimal(value), "USD")


@pytest.fixture
def posted(ledger_service, business, accounts):
    """A small month of activity for the bakery."""

    def record(day, kind, amount, main, contra, description):
        return ledger_service.record_transaction(
            business_id=business.id,
            transaction_date=date(2024, 3, day),
            description=description,
            amount=usd(amount),
            transaction_type=kind,
            main_account_id=accounts[main].id,
            contra_account_id=accounts[contra].id,
        )

    return [
        record(1, TransactionType.TRANSFER, "5000.00", "1100", "3000", "Owner investment"),
        record(5, TransactionType.INCOME, "1200.00", "1100", "4000", "Wedding cake"),
        record(10, TransactionType.EXPENSE, "900.00", "1100", "5100", "March rent"),
        record(20, TransactionType.EXPENSE, "150.00", "2100", "5500", "Boxes on card"),
    ]


class TestTrialBalance:
    def test_balances_on_normal_side(self, reporting_service, business, posted):
        report = reporting_service.trial_balance(business.id, date(2024, 3, 31))
        lines = {line.account_code: line for line in report.lines}

        assert lines["1100"].debit == usd("5300")
        assert lines["1100"].credit == usd("0")
        assert lines["3000"].credit == usd("5000")
        assert lines["4000"].credit == usd("1200")
        assert lines["5100"].debit == usd("900")
        assert lines["5500"].debit == usd("150")
        assert lines["2100"].credit == usd("150")

    def test_is_balanced(self, reporting_service, business, posted):
        report = reporting_service.trial_balance(business.id, date(2024, 3, 31))

        assert report.is_balanced
        assert report.total_debits == report.total_credits
        assert report.difference == Money.zero()

    def test_as_of_date_excludes_later_entries(self, reporting_service, business, posted):
        report = reporting_service.trial_balance(business.id, date(2024, 3, 5))
        lines = {line.account_code: line for line in report.lines}

        assert lines["1100"].debit == usd("6200")
        assert lines["5100"].debit == usd("0")
        assert report.is_balanced

    def test_lines_ordered_by_code_and_skip_inactive(
        self, reporting_service, chart_service, business, accounts, posted
    ):
        chart_service.update_account(accounts["1600"].id, is_active=False)

        report = reporting_service.trial_balance(business.id, date(2024, 3, 31))
        codes = [line.account_code for line in report.lines]

        assert codes == sorted(codes)
        assert "1600" not in codes

    def test_defaults_to_today(self, reporting_service, business, posted):
        report = reporting_service.trial_balance(business.id)

        assert report.as_of_date == date.today()

    def test_unknown_business(self, reporting_service):
        with pytest.raises(BusinessNotFoundError):
            reporting_service.trial_balance(uuid4())


class TestGeneralLedger:
    def test_running_balance(self, reporting_service, accounts, posted):
        report = reporting_service.general_ledger(accounts["1100"].id)

        assert [line.balance for line in report.lines] == [
            usd("5000"),
            usd("6200"),
            usd("5300"),
        ]
        assert report.opening_balance == Money.zero()
        assert report.ending_balance == usd("5300")
        assert report.total_debits == usd("6200")
        assert report.total_credits == usd("900")

    def test_lines_carry_entry_numbers(self, reporting_service, accounts, posted):
        report = reporting_service.general_ledger(accounts["1100"].id)

        assert [line.entry_number for line in report.lines] == ["000001", "000002", "000003"]
        assert report.lines[1].description == "Wedding cake"
        assert report.lines[1].transaction_id == posted[1].id

    def test_opening_balance_from_earlier_entries(self, reporting_service, accounts, posted):
        report = reporting_service.general_ledger(
            accounts["1100"].id, start_date=date(2024, 3, 2), end_date=date(2024, 3, 6)
        )

        assert report.opening_balance == usd("5000")
        assert len(report.lines) == 1
        assert report.ending_balance == usd("6200")

    def test_ending_balance_matches_stored_balance(
        self, reporting_service, account_repo, accounts, posted
    ):
        report = reporting_service.general_ledger(
            accounts["1100"].id, start_date=date(2024, 3, 3)
        )

        assert report.ending_balance == account_repo.get(accounts["1100"].id).current_balance

    def test_unknown_account(self, reporting_service):
        with pytest.raises(AccountNotFoundError):
            reporting_service.general_ledger(uuid4())


class TestJournalEntries:
    def test_lists_every_entry_in_date_order(self, reporting_service, business, posted):
        entries = reporting_service.list_journal_entries(business.id)

        assert len(entries) == 2 * len(posted)
        assert [e.entry_date for e in entries] == sorted(e.entry_date for e in entries)
        assert sum((e.debit_amount for e in entries), Money.zero()) == sum(
            (e.credit_amount for e in entries), Money.zero()
        )

    def test_filters(self, reporting_service, business, accounts, posted):
        cash = reporting_service.list_journal_entries(
            business.id, account_id=accounts["1100"].id
        )
        rent = reporting_service.list_journal_entries(
            business.id, transaction_id=posted[2].id
        )
        late_march = reporting_service.list_journal_entries(
            business.id, start_date=date(2024, 3, 6), end_date=date(2024, 3, 31)
        )

        assert [e.transaction_id for e in cash] == [t.id for t in posted[:3]]
        assert {e.ledger_account_id for e in rent} == {
            accounts["1100"].id,
            accounts["5100"].id,
        }
        assert {e.transaction_id for e in late_march} == {posted[2].id, posted[3].id}

    def test_unknown_business(self, reporting_service):
        with pytest.raises(BusinessNotFoundError):
            reporting_service.list_journal_entries(uuid4())


class TestAuditBalances:
    def test_clean_ledger_has_no_drift(self, reporting_service, business, posted):
        assert reporting_service.audit_balances(business.id) == []

    def test_detects_drift(self, reporting_service, account_repo, business, accounts, posted):
        account_repo.increment_balance(accounts["4000"].id, usd("0.01"))

        drifts = reporting_service.audit_balances(business.id)

        assert len(drifts) == 1
        assert drifts[0].account_code == "4000"
        assert drifts[0].drift == usd("0.01")
