"""
contract_kernel.services.plan_store -- Business plan persistence.

Responsibility:
    SQLAlchemy implementation of the ``PlanStore`` protocol: load, create,
    save and list business plans, converting between ORM rows and frozen
    ``BusinessPlan`` DTOs.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Snapshot tamper evidence: a plan whose stored financials no longer
      hash to ``financials_hash`` is never returned.
    - Optimistic concurrency: stale writes surface as OptimisticLockError.
    - Flush only; the caller owns commit/rollback.

Failure modes:
    - PlanNotFoundError from ``save`` when the plan row is missing.
    - SnapshotTamperedError on hash mismatch at load.
    - OptimisticLockError on concurrent modification.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from contract_kernel.domain.financials import FinancialTotals
from contract_kernel.domain.plan import BusinessPlan
from contract_kernel.exceptions import (
    OptimisticLockError,
    PlanNotFoundError,
    SnapshotTamperedError,
)
from contract_kernel.logging_config import get_logger
from contract_kernel.models.plan import BusinessPlanModel, totals_to_payload
from contract_kernel.services.base import BaseService
from contract_kernel.utils.hashing import hash_payload

logger = get_logger("services.plan_store")


def hash_snapshot(totals: FinancialTotals) -> str:
    """Tamper-evidence hash of a frozen financial snapshot."""
    return hash_payload(totals_to_payload(totals))


class PlanStoreService(BaseService[BusinessPlanModel]):
    """Loads and persists business plans."""

    def get(self, plan_id: UUID, *, for_update: bool = False) -> BusinessPlan | None:
        """Load a plan, optionally locking its row (SELECT ... FOR UPDATE)."""
        if for_update:
            model = self.session.get(
                BusinessPlanModel, plan_id,
                with_for_update=True, populate_existing=True,
            )
        else:
            model = self.session.get(BusinessPlanModel, plan_id)
        if model is None:
            return None

        dto = model.to_dto()
        self._verify_snapshot(dto)
        return dto

    def create(self, plan: BusinessPlan) -> BusinessPlan:
        model = BusinessPlanModel.from_dto(plan)
        self.session.add(model)
        self.session.flush()
        logger.debug(
            "plan_created",
            extra={"plan_id": str(model.id), "contract_id": str(model.contract_id)},
        )
        return model.to_dto()

    def save(self, plan: BusinessPlan) -> BusinessPlan:
        model = self.session.get(BusinessPlanModel, plan.plan_id)
        if model is None:
            raise PlanNotFoundError(str(plan.plan_id))

        model.apply_dto(plan)
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("BusinessPlan", str(plan.plan_id)) from exc
        return model.to_dto()

    def list_for_contract(self, contract_id: UUID) -> list[BusinessPlan]:
        models = self.session.execute(
            select(BusinessPlanModel)
            .where(BusinessPlanModel.contract_id == contract_id)
            .order_by(BusinessPlanModel.version)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def _verify_snapshot(self, plan: BusinessPlan) -> None:
        if plan.financials is None or plan.financials_hash is None:
            return
        computed = hash_snapshot(plan.financials)
        if computed != plan.financials_hash:
            logger.error(
                "plan_snapshot_tampered",
                extra={
                    "plan_id": str(plan.plan_id),
                    "expected_hash": plan.financials_hash,
                    "computed_hash": computed,
                },
            )
            raise SnapshotTamperedError(str(plan.plan_id), plan.financials_hash, computed)
