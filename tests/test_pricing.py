"""Tests for the shipping/total calculator."""

from collections import namedtuple
from decimal import Decimal

import pytest

from storefront.pricing import calculate, money, shipping_for, FREE_SHIPPING_THRESHOLD, STANDARD_SHIPPING_FEE

Line = namedtuple("Line", "unit_price quantity")


class TestShipping:
    @pytest.mark.parametrize("subtotal", ["0", "-1"])
    def test_no_shipping_on_empty_subtotal(self, subtotal):
        assert shipping_for(Decimal(subtotal)) == 0

    @pytest.mark.parametrize("subtotal", ["0.01", "39", "599.99"])
    def test_flat_fee_below_threshold(self, subtotal):
        assert shipping_for(Decimal(subtotal)) == STANDARD_SHIPPING_FEE == Decimal("39")

    @pytest.mark.parametrize("subtotal", ["600", "600.00", "1500.50"])
    def test_free_from_threshold(self, subtotal):
        assert shipping_for(Decimal(subtotal)) == 0

    def test_threshold_value(self):
        assert FREE_SHIPPING_THRESHOLD == Decimal("600")


class TestCalculate:
    def test_empty_cart(self):
        totals = calculate([])
        assert totals == (0, 0, 0)

    def test_just_below_threshold(self):
        totals = calculate([Line(Decimal("599.99"), 1)])
        assert totals.subtotal == Decimal("599.99")
        assert totals.shipping == Decimal("39")
        assert totals.total == Decimal("638.99")

    def test_at_threshold(self):
        totals = calculate([Line(Decimal("300.00"), 2)])
        assert totals.shipping == 0
        assert money(totals.total) == Decimal("600.00")

    def test_many_small_lines_do_not_drift(self):
        lines = [Line(0.1, 3)] * 10  # floats go through str(), not binary expansion
        totals = calculate(lines)
        assert totals.subtotal == Decimal("3.0")
        assert totals.total == Decimal("42.0")

    def test_total_is_subtotal_plus_shipping(self):
        totals = calculate([Line(Decimal("19.99"), 3), Line(Decimal("5.25"), 4)])
        assert totals.subtotal == Decimal("19.99") * 3 + Decimal("5.25") * 4
        assert totals.total == totals.subtotal + totals.shipping


def test_money_rounds_half_up_at_presentation():
    assert money(Decimal("2.005")) == Decimal("2.01")
    assert str(money(7)) == "7.00"
