"""Tests for Money and the domain enums."""

from decimal import Decimal

import pytest

from smb_ledger.domain.value_objects import AccountType, Currency, Money
from smb_ledger.exceptions import InvalidAmountError


class TestMoney:
    def test_coerces_non_decimal_amounts(self):
        money = Money("12.50")

        assert money.amount == Decimal("12.50")
        assert money.currency == Currency.USD

    def test_accepts_lowercase_currency_code(self):
        assert Money(Decimal("1"), "eur").currency == Currency.EUR

    def test_rejects_unknown_currency(self):
        with pytest.raises(ValueError, match="Invalid currency"):
            Money(Decimal("1"), "XYZ")

    def test_rejects_garbage_amount(self):
        with pytest.raises(InvalidAmountError):
            Money("abc")

    def test_addition_and_subtraction(self):
        a = Money(Decimal("100.00"))
        b = Money(Decimal("30.25"))

        assert a + b == Money(Decimal("130.25"))
        assert a - b == Money(Decimal("69.75"))
        assert -b == Money(Decimal("-30.25"))
        assert abs(-b) == b

    def test_cannot_mix_currencies(self):
        with pytest.raises(ValueError, match="Cannot add"):
            Money(Decimal("1"), "USD") + Money(Decimal("1"), "EUR")

    def test_equality_ignores_trailing_zeros(self):
        assert Money(Decimal("5")) == Money(Decimal("5.00"))

    def test_ordering(self):
        assert Money(Decimal("1")) < Money(Decimal("2"))
        assert Money(Decimal("2")) <= Money(Decimal("2.00"))

    def test_sign_properties(self):
        assert Money.zero().is_zero
        assert Money(Decimal("0.01")).is_positive
        assert Money(Decimal("-0.01")).is_negative

    def test_minor_unit_precision(self):
        assert Money(Decimal("10.10")).has_minor_unit_precision
        assert not Money(Decimal("10.101")).has_minor_unit_precision

    def test_to_minor_units(self):
        assert Money(Decimal("150.25")).to_minor_units() == 15025
        assert Money(Decimal("-3.10")).to_minor_units() == -310

    def test_to_minor_units_rejects_sub_cent_amounts(self):
        with pytest.raises(InvalidAmountError, match="more than two decimal places"):
            Money(Decimal("0.005")).to_minor_units()

    def test_from_minor_units(self):
        money = Money.from_minor_units(15025, "USD")

        assert money.amount == Decimal("150.25")
        assert str(money.amount) == "150.25"

    def test_str_formats_with_currency(self):
        assert str(Money(Decimal("1234.5"))) == "1,234.50 USD"


class TestEnums:
    def test_account_types_are_string_valued(self):
        assert AccountType("REVENUE") is AccountType.REVENUE
        assert AccountType.ASSET.value == "ASSET"
