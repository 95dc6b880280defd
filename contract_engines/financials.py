"""
contract_engines.financials -- Pure contract financial calculation engine.

Responsibility:
    Turn a contract's line items and execution costs into the totals
    summary (signing value, input cost, direct costs, execution costs,
    supplier discount, gross profit, margin) that the approval policy
    branches on.  Also keeps execution cost amount/percentage pairs in
    sync and reports per-line margins.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import contract_kernel/domain/ types.

Invariants enforced:
    - Totality: malformed numerics (None, NaN, Infinity, negatives,
      unparsable strings) coerce to zero; ``compute_totals`` never raises.
      A product or sum that overflows the Decimal context also counts
      as zero, so every returned field is finite.
    - Determinism: Decimal-only arithmetic, no clock, no shared mutable
      state; identical inputs produce equal outputs.
    - ``profit_margin`` is zero whenever ``signing_value`` is zero.

Failure modes:
    - None.  Bad input degrades to zero-valued contributions.
"""

from __future__ import annotations

import unicodedata
from contextlib import contextmanager
from decimal import (
    ROUND_HALF_UP,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Any, Iterable, Iterator

from contract_kernel.domain.financials import (
    ZERO,
    ExecutionCost,
    FinancialTotals,
    LineItem,
    LineMargin,
)
from contract_kernel.domain.settings import DEFAULT_SETTINGS

HUNDRED = Decimal("100")
WHOLE_UNIT = Decimal("1")
PERCENT_PLACES = Decimal("0.01")


def to_amount(value: Any) -> Decimal:
    """Coerce a numeric-ish value to a non-negative finite Decimal.

    Anything that is not a finite, non-negative number becomes zero.
    Floats go through ``str`` so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not amount.is_finite() or amount < ZERO:
        return ZERO
    return amount


def _finite(value: Decimal) -> Decimal:
    return value if value.is_finite() else ZERO


@contextmanager
def _lenient_arithmetic() -> Iterator[None]:
    """Let overflow produce Infinity/NaN instead of raising.

    Callers pass every result through ``_finite`` before it escapes.
    """
    with localcontext() as ctx:
        ctx.traps[Overflow] = False
        ctx.traps[InvalidOperation] = False
        ctx.traps[DivisionByZero] = False
        yield


def compute_totals(
    line_items: Iterable[LineItem],
    execution_costs: Iterable[ExecutionCost] = (),
    supplier_discount_percent: Any = ZERO,
    vat_rate: Any = DEFAULT_SETTINGS.vat_rate,
    expert_keywords: Iterable[str] = DEFAULT_SETTINGS.expert_cost_keywords,
) -> FinancialTotals:
    """Compute the financial totals of a contract.

    Args:
        line_items: Contract line items.
        execution_costs: Execution cost entries; only ``amount`` is summed.
        supplier_discount_percent: Discount received from suppliers, as a
            percentage of total input.
        vat_rate: VAT fraction used to derive estimated revenue.
        expert_keywords: Name fragments identifying expert hiring when a
            cost does not declare ``requires_external_expert``.

    Returns:
        Frozen ``FinancialTotals``.
    """
    with _lenient_arithmetic():
        signing_value = ZERO
        total_input = ZERO
        total_direct_costs = ZERO
        for item in line_items:
            quantity = to_amount(item.quantity)
            signing_value += _finite(quantity * to_amount(item.output_price))
            total_input += _finite(quantity * to_amount(item.input_price))
            total_direct_costs += to_amount(item.direct_costs)

        keywords = _normalize_keywords(expert_keywords)
        execution_costs_sum = ZERO
        expert_hiring_amount = ZERO
        for cost in execution_costs:
            amount = to_amount(cost.amount)
            execution_costs_sum += amount
            if amount > ZERO and _matches_expert(cost, keywords):
                expert_hiring_amount += amount

        # Sums of finite terms can still overflow.
        signing_value = _finite(signing_value)
        total_input = _finite(total_input)
        total_direct_costs = _finite(total_direct_costs)
        execution_costs_sum = _finite(execution_costs_sum)
        expert_hiring_amount = min(_finite(expert_hiring_amount), execution_costs_sum)

        discount_percent = to_amount(supplier_discount_percent)
        supplier_discount_amount = _finite(total_input * discount_percent / HUNDRED)

        total_costs = _finite(
            total_input + total_direct_costs + execution_costs_sum - supplier_discount_amount
        )
        gross_profit = _finite(signing_value - total_costs)

        if signing_value > ZERO:
            profit_margin = _finite(gross_profit / signing_value * HUNDRED)
        else:
            profit_margin = ZERO

        vat = to_amount(vat_rate)
        estimated_revenue = _finite(signing_value / (1 + vat))

    return FinancialTotals(
        signing_value=signing_value,
        total_input=total_input,
        total_direct_costs=total_direct_costs,
        execution_costs_sum=execution_costs_sum,
        supplier_discount_percent=discount_percent,
        supplier_discount_amount=supplier_discount_amount,
        total_costs=total_costs,
        gross_profit=gross_profit,
        profit_margin=profit_margin,
        vat_rate=vat,
        estimated_revenue=estimated_revenue,
        expert_hiring_amount=expert_hiring_amount,
    )


def compute_line_margin(item: LineItem) -> LineMargin:
    """Margin of one line: output - input - direct costs."""
    quantity = to_amount(item.quantity)
    with _lenient_arithmetic():
        output_total = _finite(quantity * to_amount(item.output_price))
        input_total = _finite(quantity * to_amount(item.input_price))
        margin = _finite(output_total - input_total - to_amount(item.direct_costs))
        rate = _finite(margin / output_total * HUNDRED) if output_total > ZERO else ZERO
    return LineMargin(margin=margin, margin_rate=rate)


def is_expert_hiring(
    cost: ExecutionCost,
    keywords: Iterable[str] = DEFAULT_SETTINGS.expert_cost_keywords,
) -> bool:
    """Whether an execution cost is expert/outsourced hiring.

    An explicit ``requires_external_expert`` flag wins; otherwise the
    name is matched against ``keywords``.  The amount is not considered.
    """
    return _matches_expert(cost, _normalize_keywords(keywords))


def cost_with_amount(cost: ExecutionCost, amount: Any, total_input: Any) -> ExecutionCost:
    """Set a cost's amount and recompute its percentage of total input."""
    new_amount = to_amount(amount)
    base = to_amount(total_input)
    if base > ZERO:
        with _lenient_arithmetic():
            percentage = _finite(
                (new_amount / base * HUNDRED).quantize(PERCENT_PLACES, ROUND_HALF_UP)
            )
    else:
        percentage = ZERO
    return ExecutionCost(
        name=cost.name,
        amount=new_amount,
        percentage=percentage,
        requires_external_expert=cost.requires_external_expert,
    )


def cost_with_percentage(cost: ExecutionCost, percentage: Any, total_input: Any) -> ExecutionCost:
    """Set a cost's percentage and recompute its amount against total input.

    Amounts are rounded half-up to whole currency units.
    """
    new_percentage = to_amount(percentage)
    with _lenient_arithmetic():
        amount = _finite(
            (to_amount(total_input) * new_percentage / HUNDRED).quantize(WHOLE_UNIT, ROUND_HALF_UP)
        )
    return ExecutionCost(
        name=cost.name,
        amount=amount,
        percentage=new_percentage,
        requires_external_expert=cost.requires_external_expert,
    )


def _normalize_text(text: str) -> str:
    return unicodedata.normalize("NFC", text).casefold()


def _normalize_keywords(keywords: Iterable[str]) -> tuple[str, ...]:
    return tuple(_normalize_text(k) for k in keywords if k and k.strip())


def _matches_expert(cost: ExecutionCost, keywords: tuple[str, ...]) -> bool:
    if cost.requires_external_expert is not None:
        return cost.requires_external_expert
    name = _normalize_text(cost.name or "")
    return any(k in name for k in keywords)
