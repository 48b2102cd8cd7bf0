"""Standard small-business chart of accounts.

Codes follow the usual block convention: 1xxx assets, 2xxx liabilities,
3xxx equity, 4xxx revenue, 5xxx expenses. The bulk importer falls back to
1000 (cash), 4000 (sales revenue) and 5000 when a row names no account.
"""

from uuid import UUID

from smb_ledger.domain.entities import Account
from smb_ledger.domain.value_objects import AccountSubType, AccountType, Currency

# (code, name, type, sub type)
DEFAULT_CHART_OF_ACCOUNTS: list[tuple[str, str, AccountType, AccountSubType]] = [
    ("1000", "Cash", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1100", "Bank Account", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1200", "Accounts Receivable", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1300", "Inventory", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1500", "Equipment", AccountType.ASSET, AccountSubType.FIXED_ASSET),
    ("1600", "Property", AccountType.ASSET, AccountSubType.FIXED_ASSET),
    ("2000", "Accounts Payable", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2100", "Credit Card", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2200", "Sales Tax Payable", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2500", "Long-term Loan", AccountType.LIABILITY, AccountSubType.LONG_TERM_LIABILITY),
    ("3000", "Owner's Equity", AccountType.EQUITY, AccountSubType.OWNERS_EQUITY),
    ("3100", "Retained Earnings", AccountType.EQUITY, AccountSubType.RETAINED_EARNINGS),
    ("4000", "Sales Revenue", AccountType.REVENUE, AccountSubType.OPERATING_REVENUE),
    ("4100", "Service Revenue", AccountType.REVENUE, AccountSubType.OPERATING_REVENUE),
    ("4900", "Other Income", AccountType.REVENUE, AccountSubType.OTHER_REVENUE),
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE, AccountSubType.COST_OF_GOODS_SOLD),
    ("5100", "Rent Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5200", "Salaries Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5300", "Utilities Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5400", "Marketing Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5500", "Office Supplies", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
]


def build_default_accounts(
    business_id: UUID, currency: Currency = Currency.USD
) -> list[Account]:
    return [
        Account(
            business_id=business_id,
            code=code,
            name=name,
            account_type=account_type,
            sub_type=sub_type,
            currency=currency,
        )
        for code, name, account_type, sub_type in DEFAULT_CHART_OF_ACCOUNTS
    ]
