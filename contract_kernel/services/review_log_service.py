"""
contract_kernel.services.review_log_service -- Append-only plan review log.

Responsibility:
    SQLAlchemy implementation of the ``ReviewLogStore`` protocol.  Appends
    one entry per plan transition and lists a plan's history oldest first.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Append-only: there is no update or delete method, and the ORM
      listeners on ``ReviewLogModel`` reject both.
    - Ordering: each entry gets the next per-plan ``sequence``; listing is
      ordered by it, so repeated reads return the same order.
    - Isolation of failure: the insert runs inside a SAVEPOINT, so a failed
      append leaves the caller's transaction (and the plan status already
      flushed in it) intact.

Failure modes:
    - IntegrityError on a concurrent duplicate sequence (rolled back to the
      savepoint and re-raised).
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import func, select

from contract_kernel.domain.plan import ReviewLogEntry
from contract_kernel.logging_config import get_logger
from contract_kernel.models.review_log import ReviewLogModel
from contract_kernel.services.base import BaseService

logger = get_logger("services.review_log")


class ReviewLogService(BaseService[ReviewLogModel]):
    """Appends and reads plan review log entries."""

    def append(self, entry: ReviewLogEntry) -> ReviewLogEntry:
        """Persist ``entry`` as the next entry of its plan's history."""
        with self.session.begin_nested():
            last = self.session.execute(
                select(func.max(ReviewLogModel.sequence)).where(
                    ReviewLogModel.plan_id == entry.plan_id,
                )
            ).scalar_one_or_none()
            stored = replace(entry, sequence=(last or 0) + 1)
            model = ReviewLogModel.from_dto(stored)
            self.session.add(model)
            self.session.flush()

        logger.info(
            "review_log_appended",
            extra={
                "entry_id": str(stored.entry_id),
                "plan_id": str(stored.plan_id),
                "sequence": stored.sequence,
                "action": stored.action.value,
                "to_status": stored.to_status.value,
            },
        )
        return stored

    def list_by_plan(self, plan_id: UUID) -> list[ReviewLogEntry]:
        """A plan's review history, oldest first."""
        models = self.session.execute(
            select(ReviewLogModel)
            .where(ReviewLogModel.plan_id == plan_id)
            .order_by(ReviewLogModel.sequence)
        ).scalars().all()
        return [m.to_dto() for m in models]
