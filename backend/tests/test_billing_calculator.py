# Overview: Pytest coverage for the bill calculation engine.

import pytest

from oilpos.money import format_cents, percent_of, resolve_adjustment, round_half_up
from oilpos.services.billing_calculator import BillingError, CartLine, calculate_bill, calculate_line


def _cart():
    return [CartLine(unit_price_cents=10000, quantity=2)]


class TestGlobalMode:

    def test_global_discount_and_tax(self):
        """Subtotal 200, 10% off, 18% tax -> 212.40."""
        result = calculate_bill(
            _cart(),
            "global",
            global_discount_value=1000,
            global_discount_type="percent",
            global_tax_rate_bps=1800,
        )

        assert result.subtotal_cents == 20000
        assert result.discount_cents == 2000
        assert result.after_discount_cents == 18000
        assert result.tax_cents == 3240
        assert result.total_cents == 21240

    def test_totals_are_repeatable(self):
        kwargs = dict(global_discount_value=750, global_discount_type="amount", global_tax_rate_bps=1250)
        cart = [CartLine(unit_price_cents=3333, quantity=3), CartLine(unit_price_cents=199, quantity=7)]

        first = calculate_bill(cart, "global", **kwargs)
        second = calculate_bill(cart, "global", **kwargs)

        assert first == second

    def test_line_discounts_do_not_leak_into_global_totals(self):
        cart = [CartLine(unit_price_cents=10000, quantity=2, discount_value=5000, tax_rate_bps=2800)]

        result = calculate_bill(cart, "global", global_tax_rate_bps=1800)

        assert result.discount_cents == 0
        assert result.tax_cents == 3600
        assert result.total_cents == 23600

    def test_out_of_range_item_fields_are_ignored(self):
        """Item tax above 100% or an unknown item discount type cannot reject a global bill."""
        cart = [CartLine(unit_price_cents=10000, quantity=2, discount_value=700,
                         discount_type="flat", tax_rate_bps=20000)]

        result = calculate_bill(cart, "global", global_tax_rate_bps=1800)

        assert result.total_cents == 23600
        line = result.lines[0]
        assert line.base_cents == 20000
        assert line.discount_cents == 0
        assert line.tax_cents == 0
        assert line.total_cents == 20000

    def test_discount_larger_than_subtotal_floors_at_zero(self):
        result = calculate_bill(
            _cart(),
            "global",
            global_discount_value=50000,
            global_discount_type="amount",
            global_tax_rate_bps=1800,
        )

        assert result.after_discount_cents == 0
        assert result.tax_cents == 0
        assert result.total_cents == 0

    def test_percent_discount_over_hundred_floors_at_zero(self):
        result = calculate_bill(_cart(), "global", global_discount_value=15000, global_discount_type="percent")

        assert result.after_discount_cents == 0
        assert result.total_cents == 0


class TestItemizedMode:

    def test_itemized_matches_global_for_single_line(self):
        """Per-item 10% off and 18% tax gives the same 212.40 as the global bill."""
        cart = [CartLine(unit_price_cents=10000, quantity=2, discount_value=1000,
                         discount_type="percent", tax_rate_bps=1800)]

        result = calculate_bill(cart, "itemized")
        line = result.lines[0]

        assert line.base_cents == 20000
        assert line.discount_cents == 2000
        assert line.after_discount_cents == 18000
        assert line.tax_cents == 3240
        assert line.total_cents == 21240
        assert result.total_cents == 21240

    def test_global_fields_ignored_in_itemized_mode(self):
        cart = [CartLine(unit_price_cents=10000, quantity=2)]

        result = calculate_bill(
            cart,
            "itemized",
            global_discount_value=1000,
            global_discount_type="percent",
            global_tax_rate_bps=1800,
        )

        assert result.discount_cents == 0
        assert result.tax_cents == 0
        assert result.total_cents == 20000

    def test_out_of_range_global_fields_are_ignored(self):
        cart = [CartLine(unit_price_cents=10000, quantity=2)]

        result = calculate_bill(cart, "itemized", global_discount_type="flat", global_tax_rate_bps=20000)

        assert result.total_cents == 20000

    def test_totals_are_sums_of_lines(self):
        cart = [
            CartLine(unit_price_cents=4550, quantity=3, discount_value=500, discount_type="amount", tax_rate_bps=500),
            CartLine(unit_price_cents=12000, quantity=1, discount_value=250, discount_type="percent", tax_rate_bps=1800),
        ]

        result = calculate_bill(cart, "itemized")

        assert result.subtotal_cents == sum(line.base_cents for line in result.lines)
        assert result.discount_cents == sum(line.discount_cents for line in result.lines)
        assert result.tax_cents == sum(line.tax_cents for line in result.lines)
        assert result.total_cents == sum(line.total_cents for line in result.lines)

    def test_line_floor_at_zero(self):
        line = calculate_line(CartLine(unit_price_cents=500, quantity=1, discount_value=900, tax_rate_bps=1800))

        assert line.after_discount_cents == 0
        assert line.tax_cents == 0
        assert line.total_cents == 0


class TestValidation:

    def test_empty_cart_rejected(self):
        with pytest.raises(BillingError):
            calculate_bill([], "global")

    def test_unknown_mode_rejected(self):
        with pytest.raises(BillingError):
            calculate_bill(_cart(), "per-line")

    def test_unknown_discount_type_rejected(self):
        with pytest.raises(BillingError):
            calculate_bill(_cart(), "global", global_discount_value=10, global_discount_type="flat")

    def test_zero_quantity_rejected(self):
        with pytest.raises(BillingError):
            calculate_line(CartLine(unit_price_cents=100, quantity=0))

    def test_decimal_amount_rejected(self):
        with pytest.raises(ValueError):
            calculate_line(CartLine(unit_price_cents="10.50", quantity=1))

    def test_tax_rate_over_hundred_percent_rejected(self):
        with pytest.raises(ValueError):
            calculate_bill(_cart(), "global", global_tax_rate_bps=10001)


class TestMoney:

    def test_round_half_up(self):
        assert round_half_up(5, 2) == 3
        assert round_half_up(4, 2) == 2
        assert round_half_up(-5, 2) == -3

    def test_percent_of_rounds_half_up(self):
        # 18% of 25 cents is 4.5 cents
        assert percent_of(25, 1800) == 5

    def test_resolve_amount_adjustment(self):
        assert resolve_adjustment(20000, 1500, "amount") == 1500

    def test_format_cents(self):
        assert format_cents(21240) == "212.40"
        assert format_cents(5) == "0.05"
