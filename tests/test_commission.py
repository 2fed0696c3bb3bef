"""Unit tests for the commission engine."""

from decimal import Decimal

import pytest

from dispatch.domain.commission import (
    COMMISSION_RATE,
    derive_commission,
    parse_amount,
    parse_fare,
    to_money,
)
from dispatch.domain.errors import ValidationError


class TestDeriveCommission:
    def test_rate_is_twelve_percent(self):
        assert COMMISSION_RATE == Decimal("0.12")

    def test_none_fare_has_no_commission(self):
        assert derive_commission(None) is None

    def test_whole_fare(self):
        assert derive_commission(Decimal("10000")) == Decimal("1200.00")

    def test_zero_fare(self):
        assert derive_commission(0) == Decimal("0.00")

    def test_rounds_to_the_cent(self):
        # 1234.56 * 0.12 = 148.1472
        assert derive_commission(Decimal("1234.56")) == Decimal("148.15")

    def test_float_input_has_no_binary_drift(self):
        assert derive_commission(0.1) == Decimal("0.01")
        assert derive_commission(2500.5) == Decimal("300.06")

    def test_string_input(self):
        assert derive_commission("5000") == Decimal("600.00")


class TestToMoney:
    def test_quantizes_to_cents(self):
        assert to_money(Decimal("12.345")) == Decimal("12.35")
        assert str(to_money(7)) == "7.00"


class TestParseAmount:
    @pytest.mark.parametrize("value", [None, True, "abc", "", "NaN", "Infinity"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError, match="must be a number"):
            parse_amount(value, "customer_amount")

    def test_rejects_negative(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            parse_amount(-1, "driver_amount")

    def test_accepts_zero_and_strings(self):
        assert parse_amount(0) == Decimal("0.00")
        assert parse_amount(" 4999.5 ") == Decimal("4999.50")

    @pytest.mark.parametrize("value", ["100.004", Decimal("0.001"), 0.125])
    def test_sub_cent_amounts_are_rejected_not_rounded(self, value):
        with pytest.raises(ValidationError, match="two decimal places"):
            parse_amount(value, "customer_amount")

    @pytest.mark.parametrize("value", [Decimal("1e30"), "1E+10", 10**10])
    def test_oversized_amounts_are_rejected(self, value):
        with pytest.raises(ValidationError, match="must be less than 10,000,000,000"):
            parse_amount(value, "agreed_fare")

    def test_largest_storable_amount(self):
        assert parse_amount("9999999999.99") == Decimal("9999999999.99")

    def test_exponent_notation_is_kept_exact(self):
        assert parse_amount(Decimal("1.5E+3")) == Decimal("1500.00")


class TestParseFare:
    @pytest.mark.parametrize("value", [0, "0", Decimal("0.00")])
    def test_fare_must_be_positive(self, value):
        with pytest.raises(ValidationError, match="greater than zero"):
            parse_fare(value)

    def test_negative_fare_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            parse_fare(-100)

    def test_fare_must_be_numeric(self):
        with pytest.raises(ValidationError, match="agreed_fare must be a number"):
            parse_fare("ten thousand")

    def test_valid_fare(self):
        assert parse_fare(15000) == Decimal("15000.00")

    def test_huge_fare_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_fare(Decimal("1e30"))
