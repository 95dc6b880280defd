"""
contract_kernel.services.contract_review_store -- Contract review persistence.

Responsibility:
    SQLAlchemy implementations of the ``ContractStateStore`` and
    ``ContractReviewLogStore`` protocols: load and save a contract's review
    state, append and list its review history.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Optimistic concurrency on the contract row via ``row_version``.
    - Review entries are append-only and numbered per contract; the insert
      runs inside a SAVEPOINT so a failed append leaves the status change
      already flushed in the caller's transaction intact.

Failure modes:
    - ContractNotFoundError when saving a contract that does not exist.
    - OptimisticLockError when the contract row changed underneath a save.
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from contract_kernel.domain.contract_review import ContractReviewEntry, ContractState
from contract_kernel.exceptions import ContractNotFoundError, OptimisticLockError
from contract_kernel.logging_config import get_logger
from contract_kernel.models.contract import ContractModel
from contract_kernel.models.contract_review import ContractReviewModel
from contract_kernel.services.base import BaseService

logger = get_logger("services.contract_review_store")


class ContractStateService(BaseService[ContractModel]):
    """Loads and persists the review state of contracts."""

    def get(self, contract_id: UUID, *, for_update: bool = False) -> ContractState | None:
        if for_update:
            model = self.session.get(
                ContractModel, contract_id,
                with_for_update=True, populate_existing=True,
            )
        else:
            model = self.session.get(ContractModel, contract_id)
        return model.to_state() if model is not None else None

    def save(self, state: ContractState) -> ContractState:
        model = self.session.get(ContractModel, state.contract_id)
        if model is None:
            raise ContractNotFoundError(str(state.contract_id))

        model.apply_state(state)
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("Contract", str(state.contract_id)) from exc
        return model.to_state()


class ContractReviewLogService(BaseService[ContractReviewModel]):
    """Appends and reads contract review entries."""

    def append(self, entry: ContractReviewEntry) -> ContractReviewEntry:
        with self.session.begin_nested():
            last = self.session.execute(
                select(func.max(ContractReviewModel.sequence)).where(
                    ContractReviewModel.contract_id == entry.contract_id,
                )
            ).scalar_one_or_none()
            stored = replace(entry, sequence=(last or 0) + 1)
            self.session.add(ContractReviewModel.from_dto(stored))
            self.session.flush()

        logger.info(
            "contract_review_appended",
            extra={
                "entry_id": str(stored.entry_id),
                "sequence": stored.sequence,
                "action": stored.action.value,
                "to_status": stored.to_status.value,
            },
        )
        return stored

    def list_by_contract(self, contract_id: UUID) -> list[ContractReviewEntry]:
        """A contract's review history, oldest first."""
        models = self.session.execute(
            select(ContractReviewModel)
            .where(ContractReviewModel.contract_id == contract_id)
            .order_by(ContractReviewModel.sequence)
        ).scalars().all()
        return [m.to_dto() for m in models]
