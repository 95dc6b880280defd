"""
Module: contract_kernel.models.contract_review
Responsibility: ORM persistence for the contract review log.
Architecture position: Kernel > Models.  May import from db/base.py and
    kernel exceptions only (domain DTO conversion imports lazily).

Invariants enforced:
    - Append-only: ORM listeners reject UPDATE and DELETE.
    - UNIQUE(contract_id, sequence) orders each contract's history.

Audit relevance:
    One row per contract review step: submission, legal and finance
    decisions, submission for signature, signature.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import String, Text, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import Base, UUIDString
from contract_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from contract_kernel.domain.contract_review import ContractReviewEntry


class ContractReviewModel(Base):
    """Persistent contract review entry. Append-only."""

    __tablename__ = "contract_review_log"

    __table_args__ = (
        UniqueConstraint("contract_id", "sequence", name="uq_contract_review_log_sequence"),
    )

    contract_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    reviewer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    from_status: Mapped[str] = mapped_column(String(30), nullable=False)
    to_status: Mapped[str] = mapped_column(String(30), nullable=False)
    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ContractReview contract={self.contract_id} #{self.sequence} "
            f"{self.action} {self.from_status}->{self.to_status}>"
        )

    def to_dto(self) -> ContractReviewEntry:
        from contract_kernel.domain.contract_review import (
            ContractReviewAction,
            ContractReviewEntry,
            ContractReviewRole,
            ContractStatus,
        )
        from contract_kernel.domain.plan import ActorRole

        return ContractReviewEntry(
            entry_id=self.id,
            contract_id=self.contract_id,
            reviewer_id=self.reviewer_id,
            role=ContractReviewRole(self.role),
            actor_role=ActorRole(self.actor_role),
            action=ContractReviewAction(self.action),
            from_status=ContractStatus(self.from_status),
            to_status=ContractStatus(self.to_status),
            comment=self.comment,
            sequence=self.sequence,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: ContractReviewEntry) -> ContractReviewModel:
        return cls(
            id=dto.entry_id,
            contract_id=dto.contract_id,
            sequence=dto.sequence,
            reviewer_id=dto.reviewer_id,
            role=dto.role.value,
            actor_role=dto.actor_role.value,
            action=dto.action.value,
            from_status=dto.from_status.value,
            to_status=dto.to_status.value,
            comment=dto.comment,
            created_at=dto.created_at,
        )


@event.listens_for(ContractReviewModel, "before_update")
def prevent_contract_review_update(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="ContractReviewEntry",
        entity_id=str(target.id),
        reason="Contract review entries are immutable -- cannot modify",
    )


@event.listens_for(ContractReviewModel, "before_delete")
def prevent_contract_review_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="ContractReviewEntry",
        entity_id=str(target.id),
        reason="Contract review entries are immutable -- cannot delete",
    )
