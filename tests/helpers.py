"""
Shared test data and in-memory store implementations.

The in-memory stores satisfy the ContractStore, PlanStore and
ReviewLogStore protocols so that PlanWorkflowService can be exercised
without a database (service-level and concurrency tests).
"""

import threading
import time
from dataclasses import replace
from decimal import Decimal
from uuid import UUID, uuid4

from contract_kernel.domain.financials import ZERO, ExecutionCost, LineItem
from contract_kernel.domain.plan import ActorRole, BusinessPlan, ReviewLogEntry
from contract_kernel.exceptions import ContractNotFoundError, OptimisticLockError


# Test actor IDs, one per policy role
SALES_ID = UUID("00000000-0000-4000-8000-000000000001")
UNIT_LEAD_ID = UUID("00000000-0000-4000-8000-000000000002")
ACCOUNTANT_ID = UUID("00000000-0000-4000-8000-000000000003")
BOARD_ID = UUID("00000000-0000-4000-8000-000000000004")
ADMIN_ID = UUID("00000000-0000-4000-8000-000000000005")
LEGAL_ID = UUID("00000000-0000-4000-8000-000000000006")

ACTOR_IDS: dict[ActorRole, UUID] = {
    ActorRole.SALES: SALES_ID,
    ActorRole.UNIT_LEAD: UNIT_LEAD_ID,
    ActorRole.ACCOUNTANT: ACCOUNTANT_ID,
    ActorRole.BOARD: BOARD_ID,
    ActorRole.ADMIN: ADMIN_ID,
    ActorRole.LEGAL: LEGAL_ID,
}

# Signing 100M, input 65M: margin 35%
HIGH_MARGIN_ITEMS = (
    LineItem(
        name="Thiết bị mạng",
        quantity=Decimal("1"),
        input_price=Decimal("65000000"),
        output_price=Decimal("100000000"),
    ),
)

# Signing 100M, input 80M: margin 20%
LOW_MARGIN_ITEMS = (
    LineItem(
        name="Phần mềm",
        quantity=Decimal("2"),
        input_price=Decimal("40000000"),
        output_price=Decimal("50000000"),
    ),
)

EXPERT_COST = ExecutionCost(name="Phí thuê chuyên gia", amount=Decimal("2000000"))


class InMemoryContractStore:
    """ContractStore over plain dicts."""

    def __init__(self) -> None:
        self.line_items: dict[UUID, list[LineItem]] = {}
        self.execution_costs: dict[UUID, list[ExecutionCost]] = {}
        self.discounts: dict[UUID, Decimal] = {}

    def add(self, line_items=HIGH_MARGIN_ITEMS, execution_costs=(), discount=ZERO) -> UUID:
        contract_id = uuid4()
        self.line_items[contract_id] = list(line_items)
        self.execution_costs[contract_id] = list(execution_costs)
        self.discounts[contract_id] = discount
        return contract_id

    def _require(self, contract_id: UUID) -> None:
        if contract_id not in self.line_items:
            raise ContractNotFoundError(str(contract_id))

    def get_line_items(self, contract_id):
        self._require(contract_id)
        return list(self.line_items[contract_id])

    def get_execution_costs(self, contract_id):
        self._require(contract_id)
        return list(self.execution_costs[contract_id])

    def get_supplier_discount_percent(self, contract_id):
        self._require(contract_id)
        return self.discounts[contract_id]


class InMemoryPlanStore:
    """PlanStore over a dict, with a version check on save.

    ``read_delay`` widens the window between load and save so that races
    show up in concurrency tests.
    """

    def __init__(self, read_delay: float = 0.0) -> None:
        self._plans: dict[UUID, BusinessPlan] = {}
        self._versions: dict[UUID, int] = {}
        self._loaded: dict[tuple[int, UUID], int] = {}
        self._guard = threading.Lock()
        self.read_delay = read_delay
        self.saves = 0

    def get(self, plan_id, *, for_update=False):
        with self._guard:
            plan = self._plans.get(plan_id)
            if plan is not None:
                self._loaded[(threading.get_ident(), plan_id)] = self._versions[plan_id]
        if self.read_delay:
            time.sleep(self.read_delay)
        return plan

    def create(self, plan):
        with self._guard:
            self._plans[plan.plan_id] = plan
            self._versions[plan.plan_id] = 1
        return plan

    def save(self, plan):
        with self._guard:
            loaded = self._loaded.pop((threading.get_ident(), plan.plan_id), None)
            current = self._versions[plan.plan_id]
            if loaded is not None and loaded != current:
                raise OptimisticLockError("BusinessPlan", str(plan.plan_id))
            self._plans[plan.plan_id] = plan
            self._versions[plan.plan_id] = current + 1
            self.saves += 1
        return plan

    def list_for_contract(self, contract_id):
        with self._guard:
            plans = [p for p in self._plans.values() if p.contract_id == contract_id]
        return sorted(plans, key=lambda p: p.version)


class InMemoryReviewLog:
    """ReviewLogStore over a list."""

    def __init__(self) -> None:
        self.entries: list[ReviewLogEntry] = []
        self._guard = threading.Lock()

    def append(self, entry):
        with self._guard:
            sequence = sum(1 for e in self.entries if e.plan_id == entry.plan_id) + 1
            stored = replace(entry, sequence=sequence)
            self.entries.append(stored)
        return stored

    def list_by_plan(self, plan_id):
        with self._guard:
            return sorted(
                (e for e in self.entries if e.plan_id == plan_id),
                key=lambda e: e.sequence,
            )


class FailingReviewLog(InMemoryReviewLog):
    """Review log whose appends always fail."""

    def append(self, entry):
        raise RuntimeError("review log unavailable")
