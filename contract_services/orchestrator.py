"""
contract_services.orchestrator -- Wiring for a database-backed workflow.

Responsibility:
    Builds the SQLAlchemy stores for one session and composes them into a
    ``PlanWorkflowService`` and a ``ContractReviewService``.  The single
    place where the kernel's SQL stores are constructed.

Architecture position:
    Services -- top of the service layer.

Usage:
    with session_scope() as session:
        orchestrator = WorkflowOrchestrator(session, settings=get_active_settings())
        orchestrator.workflow.transition(plan_id, actor_id, "Accountant", "Approve")
        orchestrator.contract_review.transition(contract_id, actor_id, "Legal", "Approve")
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.selectors.contract_selector import ContractSelector
from contract_kernel.services.contract_review_store import (
    ContractReviewLogService,
    ContractStateService,
)
from contract_kernel.services.plan_locks import PlanLockRegistry
from contract_kernel.services.plan_store import PlanStoreService
from contract_kernel.services.review_log_service import ReviewLogService
from contract_services.contract_review_service import ContractReviewService
from contract_services.workflow_service import PlanWorkflowService


class WorkflowOrchestrator:
    """Per-session container for the plan workflow, contract review and their stores."""

    def __init__(
        self,
        session: Session,
        settings: WorkflowSettings | None = None,
        clock: Clock | None = None,
        locks: PlanLockRegistry | None = None,
        contract_locks: PlanLockRegistry | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or DEFAULT_SETTINGS
        self._clock = clock or SystemClock()

        self.contract_selector = ContractSelector(session)
        self.plan_store = PlanStoreService(session)
        self.review_log = ReviewLogService(session)

        self.workflow = PlanWorkflowService(
            contract_store=self.contract_selector,
            plan_store=self.plan_store,
            review_log=self.review_log,
            settings=self._settings,
            clock=self._clock,
            locks=locks,
        )

        self.contract_states = ContractStateService(session)
        self.contract_reviews = ContractReviewLogService(session)

        self.contract_review = ContractReviewService(
            contract_states=self.contract_states,
            review_log=self.contract_reviews,
            settings=self._settings,
            clock=self._clock,
            locks=contract_locks,
        )

    @property
    def session(self) -> Session:
        return self._session
