"""
Module: contract_kernel.models.review_log
Responsibility: ORM persistence for the business plan review log.
Architecture position: Kernel > Models.  May import from db/base.py and
    kernel exceptions only (domain DTO conversion imports lazily).

Invariants enforced:
    - Append-only: ORM listeners reject UPDATE and DELETE.
    - UNIQUE(plan_id, sequence) gives each plan a gap-free, ordered
      history and rejects a concurrent duplicate append.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE.
    - IntegrityError on a duplicate (plan_id, sequence).

Audit relevance:
    One row per plan transition: who acted, under which stage role, from
    and to which status, and why.  Used for history display only; never
    read back to drive decisions.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import Base, UUIDString
from contract_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from contract_kernel.domain.plan import ReviewLogEntry


class ReviewLogModel(Base):
    """Persistent review log entry. Append-only."""

    __tablename__ = "plan_review_log"

    __table_args__ = (
        UniqueConstraint("plan_id", "sequence", name="uq_plan_review_log_sequence"),
        Index("ix_plan_review_log_contract", "contract_id"),
    )

    plan_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    contract_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    reviewer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    from_status: Mapped[str] = mapped_column(String(30), nullable=False)
    to_status: Mapped[str] = mapped_column(String(30), nullable=False)
    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)
    auto_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReviewLog plan={self.plan_id} #{self.sequence} "
            f"{self.from_status}->{self.to_status}>"
        )

    def to_dto(self) -> ReviewLogEntry:
        """Convert ORM model to frozen domain DTO."""
        from contract_kernel.domain.plan import (
            ActorRole,
            PlanStatus,
            ReviewAction,
            ReviewLogEntry,
            ReviewRole,
        )

        return ReviewLogEntry(
            entry_id=self.id,
            plan_id=self.plan_id,
            contract_id=self.contract_id,
            reviewer_id=self.reviewer_id,
            role=ReviewRole(self.role),
            actor_role=ActorRole(self.actor_role),
            action=ReviewAction(self.action),
            from_status=PlanStatus(self.from_status),
            to_status=PlanStatus(self.to_status),
            comment=self.comment,
            auto_approved=self.auto_approved,
            sequence=self.sequence,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: ReviewLogEntry) -> ReviewLogModel:
        """Create ORM model from domain DTO."""
        return cls(
            id=dto.entry_id,
            plan_id=dto.plan_id,
            contract_id=dto.contract_id,
            sequence=dto.sequence,
            reviewer_id=dto.reviewer_id,
            role=dto.role.value,
            actor_role=dto.actor_role.value,
            action=dto.action.value,
            from_status=dto.from_status.value,
            to_status=dto.to_status.value,
            comment=dto.comment,
            auto_approved=dto.auto_approved,
            created_at=dto.created_at,
        )


# =============================================================================
# ORM-Level Immutability (Append-Only)
# =============================================================================


@event.listens_for(ReviewLogModel, "before_update")
def prevent_review_log_update(mapper, connection, target):
    """Prevent updates to review log entries."""
    raise ImmutabilityViolationError(
        entity_type="ReviewLogEntry",
        entity_id=str(target.id),
        reason="Review log entries are immutable -- cannot modify",
    )


@event.listens_for(ReviewLogModel, "before_delete")
def prevent_review_log_delete(mapper, connection, target):
    """Prevent deletion of review log entries."""
    raise ImmutabilityViolationError(
        entity_type="ReviewLogEntry",
        entity_id=str(target.id),
        reason="Review log entries are immutable -- cannot delete",
    )
