"""Tests for the bulk import service."""

import sqlite3
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from smb_ledger.domain.entities import Category
from smb_ledger.domain.value_objects import Money, TransactionType
from smb_ledger.exceptions import BusinessNotFoundError
from smb_ledger.parsers.csv_parser import ImportRow
from smb_ledger.services.bulk_import import AccountIndex, BulkImportServiceImpl


def usd(value: str) -> Money:
    return Money(Decimal(value), "USD")


def income_row(amount: str = "100", **kwargs) -> ImportRow:
    return ImportRow(
        date=kwargs.pop("date", "2024-02-01"),
        description=kwargs.pop("description", "Market stall takings"),
        amount=amount,
        transaction_type=kwargs.pop("transaction_type", "INCOME"),
        **kwargs,
    )


def make_service(
    db, business_repo, account_repo, category_repo, transaction_repo, entry_numbers, **kwargs
) -> BulkImportServiceImpl:
    return BulkImportServiceImpl(
        database=db,
        business_repo=business_repo,
        account_repo=account_repo,
        category_repo=category_repo,
        transaction_repo=transaction_repo,
        entry_numbers=entry_numbers,
        **kwargs,
    )


class TestAccountIndex:
    def test_resolves_by_id_code_or_name(self, accounts):
        index = AccountIndex(list(accounts.values()))
        cash = accounts["1000"]

        assert index.resolve(str(cash.id)) is cash
        assert index.resolve("1000") is cash
        assert index.resolve(" cash ") is cash
        assert index.resolve("nope") is None


class TestBulkImport:
    def test_income_rows_use_default_accounts(
        self, bulk_import_service, business, accounts, account_repo
    ):
        result = bulk_import_service.bulk_import(
            business.id, [income_row(), income_row(), income_row()]
        )

        assert (result.succeeded, result.failed, result.errors) == (3, 0, [])
        assert account_repo.get(accounts["4000"].id).current_balance == usd("300")
        assert account_repo.get(accounts["1000"].id).current_balance == usd("300")

    def test_expense_rows_default_to_cost_of_goods(
        self, bulk_import_service, business, accounts, account_repo
    ):
        result = bulk_import_service.bulk_import(
            business.id, [income_row("40.00", transaction_type="expense")]
        )

        assert result.succeeded == 1
        assert account_repo.get(accounts["5000"].id).current_balance == usd("40")
        assert account_repo.get(accounts["1000"].id).current_balance == usd("-40")

    def test_explicit_accounts_by_code_and_name(
        self, bulk_import_service, business, accounts, account_repo
    ):
        result = bulk_import_service.bulk_import(
            business.id,
            [income_row("55.00", account="Bank Account", contra_account="4100")],
        )

        assert result.succeeded == 1
        assert account_repo.get(accounts["1100"].id).current_balance == usd("55")
        assert account_repo.get(accounts["4100"].id).current_balance == usd("55")

    def test_transfer_with_contra(self, bulk_import_service, business, accounts, account_repo):
        result = bulk_import_service.bulk_import(
            business.id,
            [income_row("10.00", transaction_type="TRANSFER", account="1100", contra_account="1000")],
        )

        assert result.succeeded == 1
        assert account_repo.get(accounts["1100"].id).current_balance == usd("10")
        assert account_repo.get(accounts["1000"].id).current_balance == usd("-10")

    def test_netting_matches_recording_one_by_one(
        self,
        chart_service,
        ledger_service,
        bulk_import_service,
        account_repo,
    ):
        imported = chart_service.create_business("Imported Books")
        recorded = chart_service.create_business("Recorded Books")
        for business in (imported, recorded):
            chart_service.provision_default_chart(business.id)

        rows = [
            ("INCOME", "120.50", "1000", "4000"),
            ("INCOME", "80.00", "1100", "4100"),
            ("EXPENSE", "45.25", "1000", "5100"),
            ("EXPENSE", "300.00", "2100", "5200"),
            ("TRANSFER", "60.00", "1100", "1000"),
            ("INCOME", "19.99", "1000", "4000"),
        ]

        result = bulk_import_service.bulk_import(
            imported.id,
            [
                ImportRow(
                    date="2024-04-02",
                    description=f"Row {i}",
                    amount=amount,
                    transaction_type=kind,
                    account=main,
                    contra_account=contra,
                )
                for i, (kind, amount, main, contra) in enumerate(rows)
            ],
        )
        assert result.succeeded == len(rows)

        for i, (kind, amount, main, contra) in enumerate(rows):
            ledger_service.record_transaction(
                business_id=recorded.id,
                transaction_date=date(2024, 4, 2),
                description=f"Row {i}",
                amount=usd(amount),
                transaction_type=TransactionType(kind),
                main_account_id=chart_service.get_account_by_code(recorded.id, main).id,
                contra_account_id=chart_service.get_account_by_code(recorded.id, contra).id,
            )

        imported_balances = {
            a.code: a.current_balance for a in account_repo.list_by_business(imported.id)
        }
        recorded_balances = {
            a.code: a.current_balance for a in account_repo.list_by_business(recorded.id)
        }
        assert imported_balances == recorded_balances

    def test_entry_numbers_continue_the_sequence(
        self, bulk_import_service, ledger_service, business, accounts, transaction_repo
    ):
        ledger_service.record_transaction(
            business_id=business.id,
            transaction_date=date(2024, 1, 1),
            description="First",
            amount=usd("1.00"),
            transaction_type=TransactionType.INCOME,
            main_account_id=accounts["1000"].id,
            contra_account_id=accounts["4000"].id,
        )

        result = bulk_import_service.bulk_import(business.id, [income_row(), income_row()])

        numbers = sorted(
            transaction_repo.get(txn_id).entry_number for txn_id in result.transaction_ids
        )
        assert numbers == ["000002", "000003"]
        assert ledger_service.record_transaction(
            business_id=business.id,
            transaction_date=date(2024, 1, 1),
            description="After import",
            amount=usd("1.00"),
            transaction_type=TransactionType.INCOME,
            main_account_id=accounts["1000"].id,
            contra_account_id=accounts["4000"].id,
        ).entry_number == "000004"

    def test_invalid_rows_are_reported_and_skipped(
        self, bulk_import_service, business, accounts, account_repo
    ):
        rows = [
            income_row("100"),
            income_row("", row_number=7),
            income_row("abc"),
            income_row("-5"),
            income_row("1.001"),
            income_row("10", transaction_type="REFUND"),
            income_row("10", date="31st of Feb"),
            income_row("10", transaction_type="TRANSFER"),
            income_row("10", contra_account="9999"),
            income_row("10", category="Nonexistent"),
            income_row("100"),
        ]

        result = bulk_import_service.bulk_import(business.id, rows)

        assert result.succeeded == 2
        assert result.failed == 9
        assert result.total == len(rows)
        assert result.errors[0] == "Row 7: Missing required fields (amount)"
        assert result.errors[1] == "Row 3: Invalid amount 'abc': not a number"
        assert "Row 4:" in result.errors[2] and "greater than zero" in result.errors[2]
        assert "Row 5:" in result.errors[3] and "two decimal places" in result.errors[3]
        assert result.errors[4] == (
            "Row 6: Type must be INCOME, EXPENSE, or TRANSFER (got 'REFUND')"
        )
        assert result.errors[5] == "Row 7: Invalid date '31st of Feb'"
        assert result.errors[6] == "Row 8: Contra account is required for TRANSFER rows"
        assert result.errors[7] == "Row 9: Account not found: 9999"
        assert result.errors[8] == "Row 10: Category not found: Nonexistent"
        assert account_repo.get(accounts["1000"].id).current_balance == usd("200")

    def test_oversized_amount_row_is_reported_not_raised(
        self, bulk_import_service, business, accounts, account_repo
    ):
        rows = [
            income_row("100", date="2024-01-01", description="ok"),
            income_row("1e20", date="2024-01-01", description="huge"),
        ]

        result = bulk_import_service.bulk_import(business.id, rows)

        assert result.succeeded == 1
        assert result.failed == 1
        assert result.errors[0].startswith("Row 2:")
        assert "exceeds the maximum" in result.errors[0]
        assert account_repo.get(accounts["1000"].id).current_balance == usd("100")

    def test_inactive_account_row_rejected(
        self, bulk_import_service, business, accounts, account_repo
    ):
        closed = accounts["4900"]
        closed.deactivate()
        account_repo.update(closed)

        result = bulk_import_service.bulk_import(
            business.id, [income_row(contra_account="4900")]
        )

        assert result.failed == 1
        assert "inactive" in result.errors[0]

    def test_category_resolved_by_name(
        self, bulk_import_service, business, accounts, category_repo, transaction_repo
    ):
        category = Category(business_id=business.id, name="Farmers Market")
        category_repo.add(category)

        result = bulk_import_service.bulk_import(
            business.id, [income_row(category="farmers market")]
        )

        stored = transaction_repo.get(result.transaction_ids[0])
        assert stored.category_id == category.id

    def test_missing_default_account_reported_per_row(
        self, bulk_import_service, business
    ):
        result = bulk_import_service.bulk_import(business.id, [income_row()])

        assert result.failed == 1
        assert result.errors == ["Row 1: Account not found: default account 1000"]

    def test_unknown_business(self, bulk_import_service):
        with pytest.raises(BusinessNotFoundError):
            bulk_import_service.bulk_import(uuid4(), [income_row()])

    def test_empty_import(self, bulk_import_service, business):
        result = bulk_import_service.bulk_import(business.id, [])

        assert (result.succeeded, result.failed, result.errors) == (0, 0, [])

    def test_failed_batch_rolls_back_alone(
        self,
        db,
        business_repo,
        account_repo,
        category_repo,
        transaction_repo,
        entry_numbers,
        business,
        accounts,
    ):
        service = make_service(
            db,
            business_repo,
            account_repo,
            category_repo,
            transaction_repo,
            entry_numbers,
            batch_size=2,
        )
        real_add = transaction_repo.add

        def fail_on_poison(txn):
            if txn.description == "poison":
                raise sqlite3.IntegrityError("constraint failed")
            real_add(txn)

        rows = [
            income_row("1.00"),
            income_row("2.00"),
            income_row("4.00"),
            income_row("8.00", description="poison"),
            income_row("16.00"),
        ]
        with patch.object(transaction_repo, "add", side_effect=fail_on_poison):
            result = service.bulk_import(business.id, rows)

        assert result.succeeded == 3
        assert result.failed == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Rows 3-4: batch rolled back")
        # Batches one and three committed; batch two left no trace
        assert account_repo.get(accounts["1000"].id).current_balance == usd("19")
        assert account_repo.get(accounts["4000"].id).current_balance == usd("19")
        assert len(list(transaction_repo.list_by_business(business.id))) == 3
        stored_numbers = sorted(
            transaction_repo.get(txn_id).entry_number for txn_id in result.transaction_ids
        )
        assert stored_numbers == ["000001", "000002", "000003"]

    def test_timed_out_batch_is_fully_failed(
        self,
        db,
        business_repo,
        account_repo,
        category_repo,
        transaction_repo,
        entry_numbers,
        business,
        accounts,
    ):
        service = make_service(
            db,
            business_repo,
            account_repo,
            category_repo,
            transaction_repo,
            entry_numbers,
            batch_timeout_seconds=1e-9,
        )

        result = service.bulk_import(business.id, [income_row(), income_row()])

        assert result.succeeded == 0
        assert result.failed == 2
        assert "timeout" in result.errors[0]
        assert account_repo.get(accounts["1000"].id).current_balance == usd("0")
        assert list(transaction_repo.list_by_business(business.id)) == []

    def test_batch_size_must_be_positive(
        self, db, business_repo, account_repo, category_repo, transaction_repo, entry_numbers
    ):
        with pytest.raises(ValueError):
            make_service(
                db,
                business_repo,
                account_repo,
                category_repo,
                transaction_repo,
                entry_numbers,
                batch_size=0,
            )


class TestImportCsv:
    def test_imports_file_and_merges_parse_errors(
        self, bulk_import_service, business, accounts, account_repo, tmp_path
    ):
        csv_file = tmp_path / "february.csv"
        csv_file.write_text(
            "Date,Description,Amount,Type,Contra Account\n"
            "2024-02-01,Cake order,\"$1,200.00\",INCOME,4100\n"
            "2024-02-02,Missing amount,,INCOME,\n"
            "2024-02-03,Flour,150.00,EXPENSE,5000\n"
            "2024-02-04,Bad type,10.00,GIFT,\n"
        )

        result = bulk_import_service.import_csv(business.id, csv_file)

        assert result.succeeded == 2
        assert result.failed == 2
        assert result.errors == [
            "Row 3: Missing required fields (amount)",
            "Row 5: Type must be INCOME, EXPENSE, or TRANSFER (got 'GIFT')",
        ]
        assert account_repo.get(accounts["1000"].id).current_balance == usd("1050")
        assert account_repo.get(accounts["4100"].id).current_balance == usd("1200")
