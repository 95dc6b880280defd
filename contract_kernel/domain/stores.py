"""
Store interfaces consumed by the workflow service.

The core treats persistence as an opaque store.  These protocols are the
whole surface it relies on; ``contract_kernel.selectors`` and
``contract_kernel.services`` provide the SQLAlchemy implementations.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Sequence
from uuid import UUID

from contract_kernel.domain.contract_review import ContractReviewEntry, ContractState
from contract_kernel.domain.financials import ExecutionCost, LineItem
from contract_kernel.domain.plan import BusinessPlan, ReviewLogEntry


class ContractStore(Protocol):
    """Read-only access to a contract's financial inputs."""

    def get_line_items(self, contract_id: UUID) -> Sequence[LineItem]:
        ...

    def get_execution_costs(self, contract_id: UUID) -> Sequence[ExecutionCost]:
        ...

    def get_supplier_discount_percent(self, contract_id: UUID) -> Decimal:
        ...


class PlanStore(Protocol):
    """CRUD on business plans."""

    def get(self, plan_id: UUID, *, for_update: bool = False) -> BusinessPlan | None:
        ...

    def save(self, plan: BusinessPlan) -> BusinessPlan:
        ...

    def create(self, plan: BusinessPlan) -> BusinessPlan:
        ...

    def list_for_contract(self, contract_id: UUID) -> Sequence[BusinessPlan]:
        ...


class ReviewLogStore(Protocol):
    """Append-only review log."""

    def append(self, entry: ReviewLogEntry) -> ReviewLogEntry:
        ...

    def list_by_plan(self, plan_id: UUID) -> list[ReviewLogEntry]:
        ...


class ContractStateStore(Protocol):
    """Review state of contracts."""

    def get(self, contract_id: UUID, *, for_update: bool = False) -> ContractState | None:
        ...

    def save(self, state: ContractState) -> ContractState:
        ...


class ContractReviewLogStore(Protocol):
    """Append-only contract review history."""

    def append(self, entry: ContractReviewEntry) -> ContractReviewEntry:
        ...

    def list_by_contract(self, contract_id: UUID) -> list[ContractReviewEntry]:
        ...
