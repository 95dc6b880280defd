"""
Contract financial domain types (``contract_kernel.domain.financials``).

Responsibility
--------------
Pure value objects for the inputs and outputs of the financial engine:
contract line items, execution (contract-management) cost entries, and the
derived totals summary that is frozen into a business plan.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, or outer layers.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``FinancialTotals`` is frozen; once attached to a plan it is the
  figure every later approval decision reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class LineItem:
    """A product/service line of a contract.

    ``direct_costs`` is the line's total direct cost, not a per-unit figure.
    """

    name: str
    quantity: Decimal
    input_price: Decimal
    output_price: Decimal
    direct_costs: Decimal = ZERO
    supplier: str = ""


@dataclass(frozen=True)
class ExecutionCost:
    """A named contract execution cost.

    ``amount`` and ``percentage`` (of total input) describe the same cost;
    callers keep them in sync with ``contract_engines.financials``
    helpers.  ``requires_external_expert`` marks expert/outsourced hiring
    explicitly; ``None`` means unknown, in which case the cost name is
    matched against the configured keywords.
    """

    name: str
    amount: Decimal = ZERO
    percentage: Decimal = ZERO
    requires_external_expert: bool | None = None


@dataclass(frozen=True)
class LineMargin:
    """Margin of a single line item."""

    margin: Decimal
    margin_rate: Decimal


@dataclass(frozen=True)
class FinancialTotals:
    """Totals summary derived from a contract's line items and costs.

    Recomputed on demand; not a source of truth until frozen into a
    business plan snapshot.
    """

    signing_value: Decimal
    total_input: Decimal
    total_direct_costs: Decimal
    execution_costs_sum: Decimal
    supplier_discount_percent: Decimal
    supplier_discount_amount: Decimal
    total_costs: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    vat_rate: Decimal
    estimated_revenue: Decimal
    expert_hiring_amount: Decimal = ZERO

    @property
    def has_expert_hiring(self) -> bool:
        return self.expert_hiring_amount > ZERO
