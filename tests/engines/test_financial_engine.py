"""
Tests for the pure financial calculation engine.

Tests cover:
- compute_totals: signing value, costs, supplier discount, margin, revenue
- Malformed numeric coercion (None, NaN, Infinity, negatives, strings)
- Expert-hiring detection: explicit flag, keyword fallback, amount rule
- compute_line_margin
- cost_with_amount / cost_with_percentage synchronization
"""

import unicodedata
from dataclasses import fields
from decimal import Decimal

import pytest

from contract_engines.financials import (
    compute_line_margin,
    compute_totals,
    cost_with_amount,
    cost_with_percentage,
    is_expert_hiring,
    to_amount,
)
from contract_kernel.domain.financials import ZERO, ExecutionCost, LineItem


# =========================================================================
# Factory helpers
# =========================================================================


def make_item(
    quantity="1",
    input_price="0",
    output_price="0",
    direct_costs="0",
    name: str = "Hạng mục",
) -> LineItem:
    return LineItem(
        name=name,
        quantity=Decimal(quantity),
        input_price=Decimal(input_price),
        output_price=Decimal(output_price),
        direct_costs=Decimal(direct_costs),
    )


def make_cost(name: str = "Chi phí vận chuyển", amount="0", flag=None) -> ExecutionCost:
    return ExecutionCost(name=name, amount=Decimal(amount), requires_external_expert=flag)


# =========================================================================
# compute_totals
# =========================================================================


class TestComputeTotals:
    """Totals derived from line items, execution costs and discount."""

    def test_single_line_without_costs(self):
        """One line, no costs: full signing value is profit."""
        totals = compute_totals([make_item(output_price="50000000")])

        assert totals.signing_value == Decimal("50000000")
        assert totals.total_costs == ZERO
        assert totals.gross_profit == Decimal("50000000")
        assert totals.profit_margin == Decimal("100")

    def test_costs_and_supplier_discount(self):
        """Discount is taken off total input; margin relative to signing value."""
        totals = compute_totals(
            [make_item(input_price="20000000", output_price="30000000")],
            [make_cost(amount="300000")],
            supplier_discount_percent=Decimal("5"),
        )

        assert totals.total_input == Decimal("20000000")
        assert totals.total_direct_costs == ZERO
        assert totals.execution_costs_sum == Decimal("300000")
        assert totals.supplier_discount_amount == Decimal("1000000")
        assert totals.total_costs == Decimal("19300000")
        assert totals.gross_profit == Decimal("10700000")
        assert totals.profit_margin.quantize(Decimal("0.01")) == Decimal("35.67")

    def test_quantity_multiplies_prices(self):
        totals = compute_totals([
            make_item(quantity="3", input_price="100", output_price="150", direct_costs="20"),
            make_item(quantity="2", input_price="10", output_price="40"),
        ])

        assert totals.signing_value == Decimal("530")
        assert totals.total_input == Decimal("320")
        assert totals.total_direct_costs == Decimal("20")
        assert totals.total_costs == Decimal("340")
        assert totals.gross_profit == Decimal("190")

    def test_zero_signing_value_gives_zero_margin(self):
        totals = compute_totals(
            [make_item(input_price="1000", output_price="0")],
            [make_cost(amount="500")],
        )

        assert totals.signing_value == ZERO
        assert totals.profit_margin == ZERO
        assert totals.gross_profit == Decimal("-1500")

    def test_empty_contract(self):
        totals = compute_totals([])

        assert totals.signing_value == ZERO
        assert totals.total_costs == ZERO
        assert totals.profit_margin == ZERO
        assert totals.estimated_revenue == ZERO

    def test_margin_can_be_negative(self):
        totals = compute_totals([make_item(input_price="150", output_price="100")])

        assert totals.profit_margin == Decimal("-50")

    def test_estimated_revenue_excludes_vat(self):
        totals = compute_totals([make_item(output_price="110000000")])

        assert totals.vat_rate == Decimal("0.10")
        assert totals.estimated_revenue == Decimal("100000000")

    def test_custom_vat_rate(self):
        totals = compute_totals([make_item(output_price="108")], vat_rate=Decimal("0.08"))

        assert totals.estimated_revenue == Decimal("100")

    def test_inputs_recorded_on_snapshot(self):
        totals = compute_totals([make_item(output_price="10")], supplier_discount_percent="2.5")

        assert totals.supplier_discount_percent == Decimal("2.5")

    def test_identical_inputs_identical_output(self):
        items = [make_item(quantity="2", input_price="7", output_price="13")]
        costs = [make_cost(amount="3"), make_cost(name="Thuê chuyên gia", amount="4")]

        first = compute_totals(items, costs, Decimal("1.5"))
        second = compute_totals(list(items), list(costs), Decimal("1.5"))

        assert first == second
        assert repr(first) == repr(second)


# =========================================================================
# Coercion of malformed numerics
# =========================================================================


class TestMalformedNumerics:
    """Malformed numerics coerce to zero and never raise."""

    @pytest.mark.parametrize(
        "value",
        [None, "", "abc", "NaN", float("nan"), float("inf"), "-Infinity", -5, "-1", True],
    )
    def test_to_amount_coerces_to_zero(self, value):
        assert to_amount(value) == ZERO

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12.5", Decimal("12.5")),
            (7, Decimal("7")),
            (0.1, Decimal("0.1")),
            (" 42 ", Decimal("42")),
            (Decimal("3.00"), Decimal("3.00")),
        ],
    )
    def test_to_amount_accepts_numbers(self, value, expected):
        assert to_amount(value) == expected

    def test_malformed_line_values_count_as_zero(self):
        item = LineItem(
            name="Lỗi dữ liệu",
            quantity=None,
            input_price="oops",
            output_price=float("nan"),
            direct_costs=Decimal("-10"),
        )

        totals = compute_totals([item, make_item(output_price="100")])

        assert totals.signing_value == Decimal("100")
        assert totals.total_input == ZERO
        assert totals.total_direct_costs == ZERO

    def test_malformed_discount_and_cost(self):
        totals = compute_totals(
            [make_item(input_price="100", output_price="200")],
            [ExecutionCost(name="x", amount="Infinity")],
            supplier_discount_percent="not-a-number",
        )

        assert totals.execution_costs_sum == ZERO
        assert totals.supplier_discount_amount == ZERO
        assert totals.profit_margin == Decimal("50")

    def test_overflowing_line_product_counts_as_zero(self):
        huge = make_item(quantity="1e999999", input_price="1e999999", output_price="1e999999")

        totals = compute_totals([huge, make_item(output_price="100")])

        assert totals.signing_value == Decimal("100")
        assert totals.total_input == ZERO
        assert totals.profit_margin == Decimal("100")

    def test_overflowing_cost_sum_counts_as_zero(self):
        costs = [
            make_cost(name="Phí thuê chuyên gia", amount="9e999999"),
            make_cost(name="Phí thuê chuyên gia", amount="9e999999"),
        ]

        totals = compute_totals([make_item(input_price="50", output_price="100")], costs)

        assert totals.execution_costs_sum == ZERO
        assert totals.expert_hiring_amount == ZERO
        assert totals.gross_profit == Decimal("50")

    def test_every_field_finite_after_overflow(self):
        totals = compute_totals(
            [make_item(quantity="9e999999", input_price="9e999999", output_price="2")],
            [make_cost(amount="9e999999")],
            supplier_discount_percent="9e999999",
        )

        for field in fields(totals):
            assert getattr(totals, field.name).is_finite(), field.name


# =========================================================================
# Expert hiring
# =========================================================================


class TestExpertHiring:
    """Expert-hiring criterion and its effect on totals."""

    def test_keyword_match_in_name(self):
        assert is_expert_hiring(make_cost(name="Phí thuê chuyên gia"))

    def test_keyword_match_is_case_insensitive(self):
        assert is_expert_hiring(make_cost(name="CHI PHÍ THUÊ NGOÀI"))

    def test_keyword_match_normalizes_unicode(self):
        decomposed = unicodedata.normalize("NFD", "Phí Chuyên Gia")
        assert decomposed != "Phí Chuyên Gia"
        assert is_expert_hiring(make_cost(name=decomposed))

    def test_non_matching_name(self):
        assert not is_expert_hiring(make_cost(name="Chi phí vận chuyển"))

    def test_explicit_flag_wins_over_name(self):
        assert not is_expert_hiring(make_cost(name="Phí chuyên gia", flag=False))
        assert is_expert_hiring(make_cost(name="Tư vấn pháp lý", flag=True))

    def test_custom_keywords(self):
        cost = make_cost(name="Consultant fee")
        assert not is_expert_hiring(cost)
        assert is_expert_hiring(cost, keywords=("consultant",))

    def test_expert_amount_summed(self):
        totals = compute_totals(
            [make_item(output_price="100000000")],
            [
                make_cost(name="Phí thuê chuyên gia", amount="2000000"),
                make_cost(name="Vận chuyển", amount="500000"),
                make_cost(name="Kỹ sư", amount="1000000", flag=True),
            ],
        )

        assert totals.expert_hiring_amount == Decimal("3000000")
        assert totals.execution_costs_sum == Decimal("3500000")
        assert totals.has_expert_hiring

    def test_zero_amount_expert_cost_not_counted(self):
        totals = compute_totals(
            [make_item(output_price="100")],
            [make_cost(name="Phí thuê chuyên gia", amount="0")],
        )

        assert totals.expert_hiring_amount == ZERO
        assert not totals.has_expert_hiring


# =========================================================================
# Line margin
# =========================================================================


class TestLineMargin:

    def test_margin_and_rate(self):
        margin = compute_line_margin(
            make_item(quantity="2", input_price="30", output_price="50", direct_costs="10")
        )

        assert margin.margin == Decimal("30")
        assert margin.margin_rate == Decimal("30")

    def test_zero_output_gives_zero_rate(self):
        margin = compute_line_margin(make_item(input_price="10"))

        assert margin.margin == Decimal("-10")
        assert margin.margin_rate == ZERO

    def test_overflow_gives_zero_margin(self):
        margin = compute_line_margin(
            make_item(quantity="1e999999", input_price="1e999999", output_price="1e999999")
        )

        assert margin.margin == ZERO
        assert margin.margin_rate == ZERO


# =========================================================================
# Execution cost amount/percentage sync
# =========================================================================


class TestExecutionCostSync:

    def test_amount_sets_percentage(self):
        cost = cost_with_amount(make_cost(), Decimal("300000"), Decimal("20000000"))

        assert cost.amount == Decimal("300000")
        assert cost.percentage == Decimal("1.50")

    def test_percentage_rounded_half_up(self):
        cost = cost_with_amount(make_cost(), Decimal("1"), Decimal("3"))

        assert cost.percentage == Decimal("33.33")

    def test_amount_with_zero_input_gives_zero_percentage(self):
        cost = cost_with_amount(make_cost(), Decimal("500"), ZERO)

        assert cost.percentage == ZERO
        assert cost.amount == Decimal("500")

    def test_percentage_sets_whole_unit_amount(self):
        cost = cost_with_percentage(make_cost(), Decimal("2.5"), Decimal("1234567"))

        assert cost.percentage == Decimal("2.5")
        assert cost.amount == Decimal("30864")

    def test_unrepresentable_amount_gives_zero(self):
        cost = cost_with_percentage(make_cost(), "50", "1e999999")

        assert cost.amount == ZERO
        assert cost.percentage == Decimal("50")

    def test_sync_keeps_name_and_flag(self):
        original = make_cost(name="Thuê chuyên gia", flag=True)

        cost = cost_with_percentage(original, "10", "1000")

        assert cost.name == "Thuê chuyên gia"
        assert cost.requires_external_expert is True
        assert cost.amount == Decimal("100")
