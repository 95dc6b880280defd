"""
Module: contract_kernel.models.plan
Responsibility: ORM persistence for business plans (PAKD) and their frozen
    financial snapshots.
Architecture position: Kernel > Models.  May import from db/base.py only
    (domain DTO conversion imports lazily).

Invariants enforced:
    - Valid status values (check constraint).
    - One plan per (contract, version).
    - Optimistic concurrency: ``row_version`` is SQLAlchemy's version
      counter; a stale UPDATE raises ``StaleDataError``.
    - ``financials`` is stored as canonical strings so the snapshot hash
      recorded at freeze time can be re-verified on every load.

Failure modes:
    - IntegrityError on duplicate (contract_id, version).
    - StaleDataError on concurrent update (translated to
      OptimisticLockError by the plan store).
"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from contract_kernel.domain.financials import FinancialTotals
    from contract_kernel.domain.plan import BusinessPlan


def totals_to_payload(totals: FinancialTotals) -> dict[str, str]:
    """Serialize a totals snapshot to a dict of Decimal strings."""
    return {f.name: str(getattr(totals, f.name)) for f in fields(totals)}


def totals_from_payload(payload: dict[str, Any]) -> FinancialTotals:
    """Rebuild a totals snapshot from its stored dict."""
    from contract_kernel.domain.financials import FinancialTotals

    known = {f.name for f in fields(FinancialTotals)}
    return FinancialTotals(**{
        key: Decimal(str(value)) for key, value in payload.items() if key in known
    })


class BusinessPlanModel(Base):
    """Persistent business plan.

    Contract:
        Status changes only through the workflow service.  Approved and
        Rejected are terminal.

    Guarantees:
        - ``financials`` / ``financials_hash`` are written together when the
          snapshot is frozen.
        - ``row_version`` increments on every UPDATE.
    """

    __tablename__ = "business_plans"

    __table_args__ = (
        CheckConstraint(
            "status IN ('Draft', 'Pending_Unit', 'Pending_Finance', "
            "'Pending_Board', 'Approved', 'Rejected')",
            name="ck_business_plans_valid_status",
        ),
        UniqueConstraint("contract_id", "version", name="uq_business_plans_contract_version"),
        Index("ix_business_plans_contract_active", "contract_id", "is_active"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("contracts.id"), nullable=False,
    )
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="Draft")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    financials: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    financials_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    row_version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    def __repr__(self) -> str:
        return (
            f"<BusinessPlan {self.id} contract={self.contract_id} "
            f"v{self.version} status={self.status}>"
        )

    def to_dto(self) -> BusinessPlan:
        """Convert ORM model to frozen domain DTO."""
        from contract_kernel.domain.plan import BusinessPlan, PlanStatus

        return BusinessPlan(
            plan_id=self.id,
            contract_id=self.contract_id,
            status=PlanStatus(self.status),
            version=self.version,
            is_active=self.is_active,
            financials=(
                totals_from_payload(self.financials) if self.financials is not None else None
            ),
            financials_hash=self.financials_hash,
            created_by=self.created_by_id,
            created_at=self.created_at,
            approved_by=self.approved_by_id,
            approved_at=self.approved_at,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto: BusinessPlan) -> BusinessPlanModel:
        """Create ORM model from domain DTO."""
        model = cls(
            id=dto.plan_id,
            contract_id=dto.contract_id,
            version=dto.version,
            created_by_id=dto.created_by,
            created_at=dto.created_at,
        )
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: BusinessPlan) -> None:
        """Copy the mutable fields of a DTO onto this row."""
        self.status = dto.status.value
        self.is_active = dto.is_active
        self.financials = (
            totals_to_payload(dto.financials) if dto.financials is not None else None
        )
        self.financials_hash = dto.financials_hash
        self.approved_by_id = dto.approved_by
        self.approved_at = dto.approved_at
        self.notes = dto.notes
