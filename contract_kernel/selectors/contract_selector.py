"""
Module: contract_kernel.selectors.contract_selector
Responsibility: Read-only access to a contract's financial inputs.  This is
    the SQLAlchemy implementation of the ``ContractStore`` protocol consumed
    by the workflow service.
Architecture position: Kernel > Selectors.

Failure modes:
    - ContractNotFoundError when the contract does not exist.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from contract_kernel.domain.financials import ExecutionCost, LineItem
from contract_kernel.exceptions import ContractNotFoundError
from contract_kernel.models.contract import (
    ContractModel,
    ExecutionCostModel,
    LineItemModel,
)
from contract_kernel.selectors.base import BaseSelector


class ContractSelector(BaseSelector[ContractModel]):
    """Reads contract line items, execution costs and supplier discount."""

    def get_line_items(self, contract_id: UUID) -> list[LineItem]:
        self._require_contract(contract_id)
        rows = self.session.execute(
            select(LineItemModel)
            .where(LineItemModel.contract_id == contract_id)
            .order_by(LineItemModel.position)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def get_execution_costs(self, contract_id: UUID) -> list[ExecutionCost]:
        self._require_contract(contract_id)
        rows = self.session.execute(
            select(ExecutionCostModel)
            .where(ExecutionCostModel.contract_id == contract_id)
            .order_by(ExecutionCostModel.position)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def get_supplier_discount_percent(self, contract_id: UUID) -> Decimal:
        return self._require_contract(contract_id).supplier_discount_percent

    def _require_contract(self, contract_id: UUID) -> ContractModel:
        contract = self.session.get(ContractModel, contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return contract
