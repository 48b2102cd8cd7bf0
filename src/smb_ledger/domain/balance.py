"""Balance math shared by every path that moves or reads account balances.

Recording, reversal, bulk-import netting and the read-side reports all call
``balance_delta`` so that creation and reversal can never drift apart.
"""

from smb_ledger.domain.value_objects import AccountType, BalanceType, Money

NORMAL_BALANCES: dict[AccountType, BalanceType] = {
    AccountType.ASSET: BalanceType.DEBIT,
    AccountType.EXPENSE: BalanceType.DEBIT,
    AccountType.LIABILITY: BalanceType.CREDIT,
    AccountType.EQUITY: BalanceType.CREDIT,
    AccountType.REVENUE: BalanceType.CREDIT,
}


def expected_normal_balance(account_type: AccountType) -> BalanceType:
    return NORMAL_BALANCES[account_type]


def balance_delta(
    normal_balance: BalanceType, debit_amount: Money, credit_amount: Money
) -> Money:
    """Signed change a posting makes to an account's running balance.

    Debit-normal accounts grow with debits, credit-normal accounts with credits.
    """
    if normal_balance == BalanceType.DEBIT:
        return debit_amount - credit_amount
    return credit_amount - debit_amount


def reverse_delta(
    normal_balance: BalanceType, debit_amount: Money, credit_amount: Money
) -> Money:
    """Change that exactly undoes ``balance_delta`` for the same posting."""
    return -balance_delta(normal_balance, debit_amount, credit_amount)
