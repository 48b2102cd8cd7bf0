"""Command-line interface for SMB Ledger."""

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

from smb_ledger.config import DatabaseType, get_settings
from smb_ledger.container import Container
from smb_ledger.domain.entities import Account, Business
from smb_ledger.domain.value_objects import (
    AccountSubType,
    AccountType,
    Currency,
    Money,
    TransactionType,
)
from smb_ledger.exceptions import (
    AccountNotFoundError,
    BusinessNotFoundError,
    SMBLedgerError,
)
from smb_ledger.logging_config import configure_logging


def get_default_db_path() -> Path:
    """Get the database path from settings (``SMB_LEDGER_SQLITE_PATH``)."""
    return get_settings().sqlite_path


def create_container(args: argparse.Namespace) -> Container:
    """Build a container, pointing it at ``--database`` when given."""
    settings = get_settings()
    if args.database:
        settings = settings.model_copy(
            update={
                "database_type": DatabaseType.SQLITE,
                "database_url": None,
                "sqlite_path": Path(args.database),
            }
        )
    return Container(settings)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def _parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}")


def _resolve_business(container: Container, ref: str) -> Business:
    """Find a business by id or exact name."""
    try:
        return container.chart_of_accounts_service.get_business(UUID(ref))
    except ValueError:
        pass
    business = container.business_repository.get_by_name(ref)
    if business is None:
        raise BusinessNotFoundError(ref)
    return business


def _resolve_account(container: Container, business_id: UUID, ref: str) -> Account:
    """Find an account by id or code within a business."""
    try:
        account = container.account_repository.get(UUID(ref))
    except ValueError:
        account = container.account_repository.get_by_code(ref, business_id)
    if account is None or account.business_id != business_id:
        raise AccountNotFoundError(ref)
    return account


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = Path(args.database) if args.database else get_default_db_path()

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    args.database = str(db_path)
    with create_container(args) as container:
        container.database  # opening the database creates the schema

    print(f"Initialized database at {db_path}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    settings = get_settings()
    print(f"{settings.app_name} v{settings.app_version}")
    return 0


def cmd_business_create(args: argparse.Namespace) -> int:
    """Create a business, optionally with the default chart of accounts."""
    with create_container(args) as container:
        service = container.chart_of_accounts_service
        business = service.create_business(args.name, Currency(args.currency))
        print(f"Business created: {business.id}")
        print(f"  Name: {business.name}")
        print(f"  Currency: {business.currency.value}")
        if args.default_chart:
            created = service.provision_default_chart(business.id)
            print(f"  Accounts: {created}")
    return 0


def cmd_business_list(args: argparse.Namespace) -> int:
    """List businesses."""
    with create_container(args) as container:
        businesses = container.chart_of_accounts_service.list_businesses()
        if not businesses:
            print("No businesses found")
            return 0
        for business in businesses:
            print(f"{business.id}  {business.name} ({business.currency.value})")
    return 0


def cmd_business_delete(args: argparse.Namespace) -> int:
    """Delete a business and everything it owns."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        container.chart_of_accounts_service.delete_business(business.id)
        print(f"Business deleted: {business.name}")
    return 0


def cmd_accounts_list(args: argparse.Namespace) -> int:
    """List the chart of accounts with current balances."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        accounts = container.chart_of_accounts_service.list_accounts(
            business.id, active_only=args.active_only
        )
        if not accounts:
            print("No accounts found")
            return 0

        print(f"{'Code':<8} {'Name':<32} {'Type':<10} {'Balance':>16}")
        print("-" * 70)
        for account in accounts:
            status = "" if account.is_active else "  (inactive)"
            balance = account.current_balance.amount if account.current_balance else 0
            print(
                f"{account.code:<8} {account.name[:32]:<32} "
                f"{account.account_type.value:<10} {balance:>16,.2f}{status}"
            )
    return 0


def cmd_accounts_create(args: argparse.Namespace) -> int:
    """Add an account to a business's chart."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        account = container.chart_of_accounts_service.create_account(
            business.id,
            code=args.code,
            name=args.name,
            account_type=AccountType(args.type),
            sub_type=AccountSubType(args.sub_type) if args.sub_type else None,
            description=args.description,
        )
        print(f"Account created: {account.id}")
        print(f"  {account.code} {account.name} ({account.normal_balance.value})")
    return 0


def cmd_accounts_default_chart(args: argparse.Namespace) -> int:
    """Add the standard small-business chart of accounts."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        created = container.chart_of_accounts_service.provision_default_chart(
            business.id
        )
        print(f"Created {created} accounts for {business.name}")
    return 0


def cmd_accounts_deactivate(args: argparse.Namespace) -> int:
    """Soft-disable an account so it accepts no new postings."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        account = _resolve_account(container, business.id, args.account)
        container.chart_of_accounts_service.update_account(account.id, is_active=False)
        print(f"Account deactivated: {account.code} {account.name}")
    return 0


def cmd_category_create(args: argparse.Namespace) -> int:
    """Create a reporting category."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        category = container.chart_of_accounts_service.create_category(
            business.id,
            args.name,
            category_type=TransactionType(args.type) if args.type else None,
        )
        print(f"Category created: {category.id}")
    return 0


def cmd_record(args: argparse.Namespace) -> int:
    """Record a single transaction."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        main = _resolve_account(container, business.id, args.account)
        contra = _resolve_account(container, business.id, args.contra)

        category_id = None
        if args.category:
            category = container.category_repository.get_by_name(
                args.category, business.id
            )
            if category is None:
                print(f"Error: Category not found: {args.category}")
                return 1
            category_id = category.id

        txn = container.ledger_service.record_transaction(
            business_id=business.id,
            transaction_date=args.date or date.today(),
            description=args.description,
            amount=Money(args.amount, business.currency),
            transaction_type=TransactionType(args.type),
            main_account_id=main.id,
            contra_account_id=contra.id,
            category_id=category_id,
            reference_number=args.reference,
            notes=args.notes,
        )
        print(f"Transaction recorded: {txn.id}")
        print(f"  Entry number: {txn.entry_number}")
        for entry in txn.journal_entries:
            account = main if entry.ledger_account_id == main.id else contra
            print(
                f"  {account.code:<8} Dr {entry.debit_amount.amount:>14,.2f}"
                f"  Cr {entry.credit_amount.amount:>14,.2f}"
            )
    return 0


def cmd_transactions_list(args: argparse.Namespace) -> int:
    """List a business's transactions, newest first."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        account_id = None
        if args.account:
            account_id = _resolve_account(container, business.id, args.account).id
        transactions = container.ledger_service.list_transactions(
            business.id,
            transaction_type=TransactionType(args.type) if args.type else None,
            account_id=account_id,
            start_date=args.start,
            end_date=args.end,
        )
        if not transactions:
            print("No transactions found")
            return 0
        for txn in transactions:
            flag = "R" if txn.is_reconciled else " "
            print(
                f"{txn.transaction_date.isoformat()} {txn.entry_number or '':<10} {flag} "
                f"{txn.transaction_type.value:<8} {txn.amount.amount:>14,.2f}  "
                f"{txn.description}  [{txn.id}]"
            )
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a transaction and reverse its balance effects."""
    with create_container(args) as container:
        container.ledger_service.delete_transaction(UUID(args.transaction_id))
        print(f"Transaction deleted: {args.transaction_id}")
    return 0


def cmd_reconcile(args: argparse.Namespace) -> int:
    """Mark a transaction as reconciled."""
    with create_container(args) as container:
        container.ledger_service.reconcile_transaction(UUID(args.transaction_id))
        print(f"Transaction reconciled: {args.transaction_id}")
    return 0


def cmd_unreconcile(args: argparse.Namespace) -> int:
    """Clear a transaction's reconciled flag."""
    with create_container(args) as container:
        container.ledger_service.unreconcile_transaction(UUID(args.transaction_id))
        print(f"Transaction unreconciled: {args.transaction_id}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import transactions from a CSV file."""
    file_path = Path(args.file)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}")
        return 1

    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        result = container.bulk_import_service.import_csv(business.id, file_path)

    print(f"Imported: {result.succeeded}")
    print(f"Failed: {result.failed}")
    for error in result.errors:
        print(f"  {error}")
    return 0 if result.failed == 0 else 1


def cmd_trial_balance(args: argparse.Namespace) -> int:
    """Print the trial balance."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        report = container.reporting_service.trial_balance(business.id, args.as_of)

    print(f"Trial balance for {business.name} as of {report.as_of_date.isoformat()}")
    print(f"{'Code':<8} {'Name':<32} {'Debit':>14} {'Credit':>14}")
    print("-" * 70)
    for line in report.lines:
        print(
            f"{line.account_code:<8} {line.account_name[:32]:<32} "
            f"{line.debit.amount:>14,.2f} {line.credit.amount:>14,.2f}"
        )
    print("-" * 70)
    print(
        f"{'Total':<41} {report.total_debits.amount:>14,.2f} "
        f"{report.total_credits.amount:>14,.2f}"
    )
    if not report.is_balanced:
        print(f"OUT OF BALANCE by {report.difference.amount:,.2f}")
        return 1
    return 0


def cmd_ledger(args: argparse.Namespace) -> int:
    """Print the general ledger for one account."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        account = _resolve_account(container, business.id, args.account)
        report = container.reporting_service.general_ledger(
            account.id, start_date=args.start, end_date=args.end
        )

    print(f"General ledger: {report.account_code} {report.account_name}")
    print(f"Opening balance: {report.opening_balance.amount:,.2f}")
    for line in report.lines:
        print(
            f"{line.entry_date.isoformat()} {line.entry_number:<10} "
            f"{line.debit.amount:>12,.2f} {line.credit.amount:>12,.2f} "
            f"{line.balance.amount:>14,.2f}  {line.description}"
        )
    print(
        f"Totals: Dr {report.total_debits.amount:,.2f}  "
        f"Cr {report.total_credits.amount:,.2f}"
    )
    print(f"Ending balance: {report.ending_balance.amount:,.2f}")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    """Compare stored balances with balances rebuilt from journal entries."""
    with create_container(args) as container:
        business = _resolve_business(container, args.business)
        drifts = container.reporting_service.audit_balances(business.id)

    if not drifts:
        print("All account balances agree with their journal entries")
        return 0
    for drift in drifts:
        print(
            f"{drift.account_code:<8} stored {drift.stored_balance.amount:,.2f} "
            f"computed {drift.computed_balance.amount:,.2f} "
            f"drift {drift.drift.amount:,.2f}"
        )
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="smb-ledger",
        description="SMB Ledger - Double-entry bookkeeping for small businesses",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # business command group
    business_parser = subparsers.add_parser("business", help="Business commands")
    business_subparsers = business_parser.add_subparsers(
        dest="business_command", help="Business subcommands"
    )

    business_create_parser = business_subparsers.add_parser(
        "create", help="Create a business"
    )
    business_create_parser.add_argument("name", help="Business name")
    business_create_parser.add_argument(
        "--currency",
        choices=[c.value for c in Currency],
        default=Currency.USD.value,
        help="Reporting currency (default: USD)",
    )
    business_create_parser.add_argument(
        "--default-chart",
        action="store_true",
        help="Also create the standard chart of accounts",
    )
    business_create_parser.set_defaults(func=cmd_business_create)

    business_list_parser = business_subparsers.add_parser(
        "list", help="List businesses"
    )
    business_list_parser.set_defaults(func=cmd_business_list)

    business_delete_parser = business_subparsers.add_parser(
        "delete", help="Delete a business and all of its records"
    )
    business_delete_parser.add_argument("business", help="Business ID or name")
    business_delete_parser.set_defaults(func=cmd_business_delete)

    # accounts command group
    accounts_parser = subparsers.add_parser("accounts", help="Chart of accounts commands")
    accounts_subparsers = accounts_parser.add_subparsers(
        dest="accounts_command", help="Account subcommands"
    )

    accounts_list_parser = accounts_subparsers.add_parser("list", help="List accounts")
    accounts_list_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    accounts_list_parser.add_argument(
        "--active-only", action="store_true", help="Hide inactive accounts"
    )
    accounts_list_parser.set_defaults(func=cmd_accounts_list)

    accounts_create_parser = accounts_subparsers.add_parser(
        "create", help="Create an account"
    )
    accounts_create_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    accounts_create_parser.add_argument("--code", required=True, help="Account code")
    accounts_create_parser.add_argument("--name", required=True, help="Account name")
    accounts_create_parser.add_argument(
        "--type",
        required=True,
        choices=[t.value for t in AccountType],
        help="Account type",
    )
    accounts_create_parser.add_argument(
        "--sub-type", choices=[t.value for t in AccountSubType], help="Account sub-type"
    )
    accounts_create_parser.add_argument("--description", help="Description")
    accounts_create_parser.set_defaults(func=cmd_accounts_create)

    accounts_default_parser = accounts_subparsers.add_parser(
        "default-chart", help="Create the standard chart of accounts"
    )
    accounts_default_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    accounts_default_parser.set_defaults(func=cmd_accounts_default_chart)

    accounts_deactivate_parser = accounts_subparsers.add_parser(
        "deactivate", help="Deactivate an account"
    )
    accounts_deactivate_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    accounts_deactivate_parser.add_argument("account", help="Account ID or code")
    accounts_deactivate_parser.set_defaults(func=cmd_accounts_deactivate)

    # category command
    category_parser = subparsers.add_parser("category", help="Create a category")
    category_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    category_parser.add_argument("--name", required=True, help="Category name")
    category_parser.add_argument(
        "--type", choices=[t.value for t in TransactionType], help="Category type"
    )
    category_parser.set_defaults(func=cmd_category_create)

    # record command
    record_parser = subparsers.add_parser("record", help="Record a transaction")
    record_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    record_parser.add_argument(
        "--type",
        required=True,
        choices=[t.value for t in TransactionType],
        help="Transaction type",
    )
    record_parser.add_argument(
        "--amount", required=True, type=_parse_decimal, help="Positive amount"
    )
    record_parser.add_argument("--description", required=True, help="Description")
    record_parser.add_argument(
        "--account", required=True, help="Main (cash-like) account ID or code"
    )
    record_parser.add_argument(
        "--contra", required=True, help="Contra account ID or code"
    )
    record_parser.add_argument(
        "--date", type=_parse_date, default=None, help="Date (YYYY-MM-DD, default today)"
    )
    record_parser.add_argument("--category", help="Category name")
    record_parser.add_argument("--reference", help="Reference number")
    record_parser.add_argument("--notes", help="Notes")
    record_parser.set_defaults(func=cmd_record)

    # transactions command
    transactions_parser = subparsers.add_parser(
        "transactions", help="List transactions"
    )
    transactions_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    transactions_parser.add_argument("--account", help="Only this account (ID or code)")
    transactions_parser.add_argument(
        "--type", choices=[t.value for t in TransactionType], help="Transaction type"
    )
    transactions_parser.add_argument("--start", type=_parse_date, help="Start date")
    transactions_parser.add_argument("--end", type=_parse_date, help="End date")
    transactions_parser.set_defaults(func=cmd_transactions_list)

    # delete / reconcile / unreconcile commands
    delete_parser = subparsers.add_parser("delete", help="Delete a transaction")
    delete_parser.add_argument("transaction_id", help="Transaction ID")
    delete_parser.set_defaults(func=cmd_delete)

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Mark a transaction as reconciled"
    )
    reconcile_parser.add_argument("transaction_id", help="Transaction ID")
    reconcile_parser.set_defaults(func=cmd_reconcile)

    unreconcile_parser = subparsers.add_parser(
        "unreconcile", help="Clear a transaction's reconciled flag"
    )
    unreconcile_parser.add_argument("transaction_id", help="Transaction ID")
    unreconcile_parser.set_defaults(func=cmd_unreconcile)

    # import command
    import_parser = subparsers.add_parser("import", help="Import transactions from CSV")
    import_parser.add_argument("file", help="CSV file to import")
    import_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    import_parser.set_defaults(func=cmd_import)

    # reports
    trial_balance_parser = subparsers.add_parser(
        "trial-balance", help="Show the trial balance"
    )
    trial_balance_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    trial_balance_parser.add_argument(
        "--as-of", type=_parse_date, default=None, help="As-of date (default today)"
    )
    trial_balance_parser.set_defaults(func=cmd_trial_balance)

    ledger_parser = subparsers.add_parser("ledger", help="Show an account's ledger")
    ledger_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    ledger_parser.add_argument("--account", required=True, help="Account ID or code")
    ledger_parser.add_argument("--start", type=_parse_date, help="Start date")
    ledger_parser.add_argument("--end", type=_parse_date, help="End date")
    ledger_parser.set_defaults(func=cmd_ledger)

    audit_parser = subparsers.add_parser(
        "audit", help="Check stored balances against journal entries"
    )
    audit_parser.add_argument(
        "--business", "-b", required=True, help="Business ID or name"
    )
    audit_parser.set_defaults(func=cmd_audit)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "business" and (
        not hasattr(args, "business_command") or args.business_command is None
    ):
        business_parser.print_help()
        return 0

    if args.command == "accounts" and (
        not hasattr(args, "accounts_command") or args.accounts_command is None
    ):
        accounts_parser.print_help()
        return 0

    configure_logging()

    try:
        result: int = args.func(args)
    except SMBLedgerError as e:
        print(f"Error: {e.message}")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
