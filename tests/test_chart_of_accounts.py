"""Tests for ChartOfAccountsService and the default chart."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from smb_ledger.domain.chart_of_accounts import (
    DEFAULT_CHART_OF_ACCOUNTS,
    build_default_accounts,
)
from smb_ledger.domain.value_objects import (
    AccountType,
    BalanceType,
    Currency,
    Money,
    TransactionType,
)
from smb_ledger.exceptions import (
    AccountInUseError,
    AccountNotFoundError,
    BusinessNotFoundError,
    DuplicateAccountCodeError,
    ValidationError,
)


class TestDefaultChart:
    def test_codes_are_unique(self):
        codes = [code for code, *_ in DEFAULT_CHART_OF_ACCOUNTS]

        assert len(codes) == len(set(codes))

    def test_counts_by_type(self):
        counts: dict[AccountType, int] = {}
        for _, _, account_type, _ in DEFAULT_CHART_OF_ACCOUNTS:
            counts[account_type] = counts.get(account_type, 0) + 1

        assert len(DEFAULT_CHART_OF_ACCOUNTS) == 21
        assert counts == {
            AccountType.ASSET: 6,
            AccountType.LIABILITY: 4,
            AccountType.EQUITY: 2,
            AccountType.REVENUE: 3,
            AccountType.EXPENSE: 6,
        }

    def test_contains_import_fallback_accounts(self):
        codes = {code for code, *_ in DEFAULT_CHART_OF_ACCOUNTS}

        assert {"1000", "4000", "5000"} <= codes

    def test_accounts_carry_matching_normal_balance(self):
        for account in build_default_accounts(uuid4()):
            if account.account_type in (AccountType.ASSET, AccountType.EXPENSE):
                assert account.normal_balance == BalanceType.DEBIT
            else:
                assert account.normal_balance == BalanceType.CREDIT

    def test_accounts_use_business_currency(self):
        accounts = build_default_accounts(uuid4(), Currency.CAD)

        assert {account.currency for account in accounts} == {Currency.CAD}
        assert all(account.current_balance == Money.zero("CAD") for account in accounts)


class TestBusinesses:
    def test_create_and_list(self, chart_service):
        created = chart_service.create_business("Corner Bakery")

        assert chart_service.get_business(created.id).name == "Corner Bakery"
        assert [b.id for b in chart_service.list_businesses()] == [created.id]

    def test_name_is_required(self, chart_service):
        with pytest.raises(ValidationError, match="required"):
            chart_service.create_business("   ")

    def test_duplicate_name_rejected(self, chart_service):
        chart_service.create_business("Corner Bakery")

        with pytest.raises(ValidationError, match="already exists"):
            chart_service.create_business("Corner Bakery")

    def test_unknown_business(self, chart_service):
        with pytest.raises(BusinessNotFoundError):
            chart_service.get_business(uuid4())

    def test_delete_removes_everything_it_owns(
        self, chart_service, ledger_service, business, accounts, account_repo, transaction_repo
    ):
        ledger_service.record_transaction(
            business.id,
            date(2024, 1, 5),
            "Opening sale",
            Money(Decimal("10.00")),
            TransactionType.INCOME,
            accounts["1000"].id,
            accounts["4000"].id,
        )

        chart_service.delete_business(business.id)

        with pytest.raises(BusinessNotFoundError):
            chart_service.get_business(business.id)
        assert list(account_repo.list_by_business(business.id)) == []
        assert list(transaction_repo.list_by_business(business.id)) == []


class TestAccounts:
    def test_provision_default_chart(self, chart_service, business):
        created = chart_service.provision_default_chart(business.id)

        assert created == len(DEFAULT_CHART_OF_ACCOUNTS)
        assert chart_service.get_account_by_code(business.id, "1000").name == "Cash"

    def test_provisioning_twice_adds_nothing(self, chart_service, business):
        chart_service.provision_default_chart(business.id)

        assert chart_service.provision_default_chart(business.id) == 0

    def test_create_account_inherits_business_currency(self, chart_service):
        euro_business = chart_service.create_business("Cafe Paris", Currency.EUR)

        account = chart_service.create_account(
            euro_business.id, "1010", "Petty Cash", AccountType.ASSET
        )

        assert account.currency == Currency.EUR
        assert account.normal_balance == BalanceType.DEBIT

    def test_duplicate_code_rejected(self, chart_service, business, accounts):
        with pytest.raises(DuplicateAccountCodeError):
            chart_service.create_account(business.id, "1000", "Cash 2", AccountType.ASSET)

    def test_same_code_allowed_in_other_business(self, chart_service, accounts):
        other = chart_service.create_business("Other Shop")

        account = chart_service.create_account(other.id, "1000", "Cash", AccountType.ASSET)

        assert account.business_id == other.id

    def test_blank_code_rejected(self, chart_service, business):
        with pytest.raises(ValidationError):
            chart_service.create_account(business.id, " ", "Nothing", AccountType.ASSET)

    def test_list_active_only(self, chart_service, business, accounts):
        chart_service.update_account(accounts["1600"].id, is_active=False)

        active = chart_service.list_accounts(business.id, active_only=True)
        everything = chart_service.list_accounts(business.id)

        assert "1600" not in {a.code for a in active}
        assert len(everything) == len(active) + 1

    def test_update_descriptive_fields(self, chart_service, accounts):
        updated = chart_service.update_account(
            accounts["1100"].id, name="Operating Checking", description="Main bank"
        )

        reloaded = chart_service.get_account(updated.id)
        assert reloaded.name == "Operating Checking"
        assert reloaded.description == "Main bank"

    def test_reactivate(self, chart_service, accounts):
        chart_service.update_account(accounts["1100"].id, is_active=False)

        reloaded = chart_service.update_account(accounts["1100"].id, is_active=True)

        assert reloaded.is_active

    def test_delete_unused_account(self, chart_service, accounts):
        chart_service.delete_account(accounts["1600"].id)

        with pytest.raises(AccountNotFoundError):
            chart_service.get_account(accounts["1600"].id)

    def test_delete_account_with_postings_rejected(
        self, chart_service, ledger_service, business, accounts
    ):
        ledger_service.record_transaction(
            business.id,
            date(2024, 1, 5),
            "Sale",
            Money(Decimal("10.00")),
            TransactionType.INCOME,
            accounts["1000"].id,
            accounts["4000"].id,
        )

        with pytest.raises(AccountInUseError, match="Deactivate it instead"):
            chart_service.delete_account(accounts["4000"].id)


class TestCategories:
    def test_create_and_list(self, chart_service, business):
        chart_service.create_category(business.id, "Catering", TransactionType.INCOME)
        chart_service.create_category(business.id, "Advertising")

        names = [c.name for c in chart_service.list_categories(business.id)]

        assert names == ["Advertising", "Catering"]

    def test_duplicate_rejected(self, chart_service, business):
        chart_service.create_category(business.id, "Catering")

        with pytest.raises(ValidationError, match="already exists"):
            chart_service.create_category(business.id, "Catering")
