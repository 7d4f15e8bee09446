"""Unit tests for the GST tax calculator."""

import random
from decimal import Decimal

import pytest

from gstlifecycle.domain.services import tax_calculator
from gstlifecycle.domain.value_objects import LineItem

# rates exactly representable in decimal, values with paise
MIXED_ITEMS = [
    {"value": "1234.56", "cgst": "9", "sgst": "9"},
    {"value": "99.99", "igst": "12"},
    {"value": "10.05", "cgst": "2.5", "sgst": "2.5"},
    {"value": "0.33", "igst": "18"},
    {"value": "5000", "igst": "0"},
    {"value": "333.35", "cgst": "6", "sgst": "6"},
    {"value": "47.11", "igst": "5"},
]


class TestParseAmount:
    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "NaN", "Infinity", True])
    def test_unusable_input_is_zero(self, value) -> None:
        assert tax_calculator.parse_amount(value) == Decimal("0")

    def test_float_keeps_short_repr(self) -> None:
        assert tax_calculator.parse_amount(0.1) == Decimal("0.1")

    def test_text_is_trimmed(self) -> None:
        assert tax_calculator.parse_amount(" 1250.50 ") == Decimal("1250.50")

    def test_custom_default(self) -> None:
        assert tax_calculator.parse_amount("", default=Decimal(1)) == Decimal(1)

    def test_out_of_range_magnitude_is_unusable(self) -> None:
        assert tax_calculator.parse_amount("1e999999999", default=Decimal(1)) == Decimal(1)

    def test_vanishing_magnitude_is_zero(self) -> None:
        assert tax_calculator.parse_amount("1e-999999", default=Decimal(1)) == Decimal("0")

    @pytest.mark.parametrize("text", ["0.00", "1180.00", "333.33", "0.01", "99999999.99", "-12.50"])
    def test_format_then_parse_round_trips(self, text) -> None:
        assert tax_calculator.format_amount(tax_calculator.parse_amount(text)) == text

    def test_computed_amounts_round_trip(self) -> None:
        tax = tax_calculator.compute_item_tax("777.77", "33.33", "0", "0")
        for amount in (tax.cgst_amount, tax.total_item_value):
            assert tax_calculator.format_amount(tax_calculator.parse_amount(amount)) == amount


class TestComputeItemTax:
    def test_intrastate_item(self) -> None:
        """CGST + SGST at 9% each on 1000."""
        tax = tax_calculator.compute_item_tax("1000", "9", "9", "0")
        assert tax.assessable_amount == "1000.00"
        assert tax.cgst_amount == "90.00"
        assert tax.sgst_amount == "90.00"
        assert tax.igst_amount == "0.00"
        assert tax.total_item_value == "1180.00"
        assert tax.effective_gst_rate == "18.00"

    def test_interstate_item_uses_igst_rate(self) -> None:
        tax = tax_calculator.compute_item_tax(500, 0, 0, 12)
        assert tax.igst_amount == "60.00"
        assert tax.total_item_value == "560.00"
        assert tax.effective_gst_rate == "12.00"

    def test_half_paise_rounds_up(self) -> None:
        # 0.125 * 100 / 100 = 0.125 -> 0.13
        tax = tax_calculator.compute_item_tax("0.125", "100", "0", "0")
        assert tax.cgst_amount == "0.13"

    def test_empty_fields_produce_zero_amounts(self) -> None:
        tax = tax_calculator.compute_item_tax("", None, "x", "")
        assert tax.assessable_amount == "0.00"
        assert tax.total_item_value == "0.00"
        assert tax.effective_gst_rate == "0.00"

    def test_amount_beyond_default_precision(self) -> None:
        tax = tax_calculator.compute_item_tax("1e30", "9", "9", "0")
        assert tax.assessable_amount == "1" + "0" * 30 + ".00"
        assert tax.cgst_amount == "9" + "0" * 28 + ".00"
        assert tax.total_item_value == "118" + "0" * 28 + ".00"

    def test_idempotent(self) -> None:
        first = tax_calculator.compute_item_tax("999.99", "2.5", "2.5", "0")
        second = tax_calculator.compute_item_tax("999.99", "2.5", "2.5", "0")
        assert first == second


class TestComputeUnitPrice:
    def test_divides_total_by_quantity(self) -> None:
        assert tax_calculator.compute_unit_price("1000", "3") == "333.33"

    def test_zero_quantity_gives_zero(self) -> None:
        assert tax_calculator.compute_unit_price("1000", "0") == "0.00"

    def test_missing_quantity_counts_as_one(self) -> None:
        assert tax_calculator.compute_unit_price("250", None) == "250.00"

    def test_tiny_quantity_does_not_raise(self) -> None:
        price = tax_calculator.compute_unit_price("1000", "0.000000000000000000000000001")
        assert price == "1" + "0" * 30 + ".00"

    def test_out_of_range_total_gives_zero(self) -> None:
        assert tax_calculator.compute_unit_price("1e999999999", "1") == "0.00"


class TestComputeTotals:
    def test_sums_line_items(self) -> None:
        totals = tax_calculator.compute_totals(
            [
                {"value": "1000", "cgst": "9", "sgst": "9"},
                {"value": "500", "igst": "12"},
            ]
        )
        assert totals.total_assessable == "1500.00"
        assert totals.total_cgst == "90.00"
        assert totals.total_sgst == "90.00"
        assert totals.total_igst == "60.00"
        assert totals.total_invoice_value == "1740.00"

    def test_accepts_line_item_objects(self) -> None:
        totals = tax_calculator.compute_totals([LineItem(value="100", cgst="2.5", sgst="2.5")])
        assert totals.total_invoice_value == "105.00"

    def test_rounds_once_at_the_end(self) -> None:
        # three items of 0.333 tax each: per-item rounding would give 0.99
        items = [{"value": "3.33", "igst": "10"}] * 3
        assert tax_calculator.compute_totals(items).total_igst == "1.00"

    def test_empty_list(self) -> None:
        assert tax_calculator.compute_totals([]).total_invoice_value == "0.00"

    def test_matches_sum_of_item_amounts(self) -> None:
        """Totals agree with summed per-item amounts to within half a paisa per item."""
        totals = tax_calculator.compute_totals(MIXED_ITEMS)
        item_taxes = [
            tax_calculator.compute_item_tax(i["value"], i.get("cgst"), i.get("sgst"), i.get("igst"))
            for i in MIXED_ITEMS
        ]
        tolerance = Decimal("0.005") * len(MIXED_ITEMS)
        for total_field, item_field in (
            ("total_assessable", "assessable_amount"),
            ("total_cgst", "cgst_amount"),
            ("total_sgst", "sgst_amount"),
            ("total_igst", "igst_amount"),
            ("total_invoice_value", "total_item_value"),
        ):
            summed = sum(Decimal(getattr(t, item_field)) for t in item_taxes)
            assert abs(Decimal(getattr(totals, total_field)) - summed) <= tolerance

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_item_order_does_not_change_totals(self, seed) -> None:
        shuffled = list(MIXED_ITEMS)
        random.Random(seed).shuffle(shuffled)
        assert tax_calculator.compute_totals(shuffled) == tax_calculator.compute_totals(MIXED_ITEMS)

    def test_repeating_decimal_rate_does_not_drift(self) -> None:
        # 100.01 * 33.33% = 33.333333 per item; per-item rounding would total 9999.00
        items = [{"value": "100.01", "igst": "33.33"}] * 300
        totals = tax_calculator.compute_totals(items)
        assert totals.total_assessable == "30003.00"
        assert totals.total_igst == "10000.00"
        assert totals.total_invoice_value == "40003.00"

    def test_sub_paisa_item_taxes_accumulate(self) -> None:
        # 0.03 * 33.33% = 0.009999 per item, which rounds to 0.01 alone
        items = [{"value": "0.03", "cgst": "33.33", "sgst": "33.33"}] * 500
        totals = tax_calculator.compute_totals(items)
        assert totals.total_assessable == "15.00"
        assert totals.total_cgst == "5.00"
        assert totals.total_sgst == "5.00"
        assert totals.total_invoice_value == "25.00"


class TestFinalInvoiceValue:
    def test_round_off_can_be_negative(self) -> None:
        assert tax_calculator.apply_round_off("1740.40", "-0.40") == "1740.00"

    def test_cess_is_added(self) -> None:
        assert tax_calculator.apply_cess("1000", "12.5") == "1012.50"

    def test_round_off_and_cess(self) -> None:
        assert tax_calculator.compute_final_invoice_value("1740.40", "-0.40", "10") == "1750.00"

    def test_without_adjustments(self) -> None:
        assert tax_calculator.compute_final_invoice_value("99.999") == "100.00"

    def test_format_amount_never_negative_zero(self) -> None:
        assert tax_calculator.format_amount("-0.001") == "0.00"
