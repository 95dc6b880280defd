"""
Pytest fixtures for the contract approval core test suite.

Provides:
- Database sessions through the production models and engine module
- Deterministic clock and actor fixtures
- Factory fixtures for contracts and business plans
- Workflow services over the in-memory stores from tests.helpers
- Captured structured logs

Environment Variables:
- CONTRACT_CORE_TEST_DATABASE_URL: database URL for the SQL-backed tests.
  Defaults to an in-memory SQLite database, created fresh for every test.
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from contract_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from contract_kernel.domain.clock import DeterministicClock
from contract_kernel.domain.financials import ZERO
from contract_kernel.domain.plan import ActorRole, BusinessPlan, PlanStatus, ReviewAction
from contract_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from contract_kernel.models.contract import (
    ContractModel,
    ExecutionCostModel,
    LineItemModel,
)
from contract_kernel.services.plan_locks import PlanLockRegistry
from contract_services.contract_review_service import ContractReviewService
from contract_services.orchestrator import WorkflowOrchestrator
from contract_services.workflow_service import PlanWorkflowService
from tests.helpers import (
    ACTOR_IDS,
    HIGH_MARGIN_ITEMS,
    SALES_ID,
    InMemoryContractStore,
    InMemoryPlanStore,
    InMemoryReviewLog,
)

DEFAULT_TEST_DATABASE_URL = "sqlite://"

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture contract_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, workflow):
            workflow.transition(...)
            logs = captured_logs()
            assert any(r["message"] == "plan_transitioned" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("contract_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    """Get the test database URL from the environment, or in-memory SQLite."""
    return os.environ.get("CONTRACT_CORE_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


@pytest.fixture
def db_engine():
    """Fresh engine and schema for one test."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session; uncommitted work is rolled back at teardown."""
    sess = get_session()
    yield sess
    try:
        sess.rollback()
    finally:
        sess.close()


# =============================================================================
# Clock, actor and lock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def actor_ids() -> dict[ActorRole, UUID]:
    """Consistent actor IDs keyed by policy role."""
    return ACTOR_IDS


@pytest.fixture
def plan_locks() -> PlanLockRegistry:
    """A lock registry private to the test."""
    return PlanLockRegistry()


# =============================================================================
# SQL-backed workflow fixtures
# =============================================================================


@pytest.fixture
def orchestrator(session, deterministic_clock, plan_locks) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(
        session,
        clock=deterministic_clock,
        locks=plan_locks,
        contract_locks=PlanLockRegistry(),
    )


@pytest.fixture
def workflow(orchestrator) -> PlanWorkflowService:
    return orchestrator.workflow


@pytest.fixture
def contract_review(orchestrator) -> ContractReviewService:
    return orchestrator.contract_review


@pytest.fixture
def create_contract(session: Session):
    """Factory fixture to persist a contract with its line items and costs."""

    def _create(
        line_items=HIGH_MARGIN_ITEMS,
        execution_costs=(),
        supplier_discount_percent: Decimal = ZERO,
        contract_number: str | None = None,
    ) -> UUID:
        contract = ContractModel(
            contract_number=contract_number or f"HD-{uuid4().hex[:8]}",
            title="Hợp đồng thử nghiệm",
            supplier_discount_percent=supplier_discount_percent,
        )
        contract.line_items = [
            LineItemModel.from_dto(item, position=i) for i, item in enumerate(line_items)
        ]
        contract.execution_costs = [
            ExecutionCostModel.from_dto(cost, position=i)
            for i, cost in enumerate(execution_costs)
        ]
        session.add(contract)
        session.flush()
        return contract.id

    return _create


# Approve actions that walk a plan from Draft up to a target status
_PATH_TO_STATUS: dict[PlanStatus, tuple[tuple[ActorRole, ReviewAction], ...]] = {
    PlanStatus.DRAFT: (),
    PlanStatus.PENDING_UNIT: (
        (ActorRole.SALES, ReviewAction.SUBMIT),
    ),
    PlanStatus.PENDING_FINANCE: (
        (ActorRole.SALES, ReviewAction.SUBMIT),
        (ActorRole.UNIT_LEAD, ReviewAction.APPROVE),
    ),
}


@pytest.fixture
def plan_in_status(workflow: PlanWorkflowService, create_contract):
    """Factory fixture: open a plan on a new contract and walk it to ``status``.

    Only Draft, Pending_Unit and Pending_Finance are reachable without a
    decision by Finance; later states are driven by the test itself.
    """

    def _make(
        status: PlanStatus,
        line_items=HIGH_MARGIN_ITEMS,
        execution_costs=(),
    ) -> BusinessPlan:
        contract_id = create_contract(line_items=line_items, execution_costs=execution_costs)
        plan = workflow.open_plan(contract_id, SALES_ID)
        for role, action in _PATH_TO_STATUS[status]:
            plan = workflow.transition(plan.plan_id, ACTOR_IDS[role], role, action).plan
        assert plan.status == status
        return plan

    return _make


# =============================================================================
# In-memory workflow fixtures
# =============================================================================


@pytest.fixture
def memory_contracts() -> InMemoryContractStore:
    return InMemoryContractStore()


@pytest.fixture
def memory_plans() -> InMemoryPlanStore:
    return InMemoryPlanStore()


@pytest.fixture
def memory_review_log() -> InMemoryReviewLog:
    return InMemoryReviewLog()


@pytest.fixture
def memory_workflow(
    memory_contracts, memory_plans, memory_review_log, deterministic_clock, plan_locks,
) -> PlanWorkflowService:
    """Workflow service wired to the in-memory stores."""
    return PlanWorkflowService(
        contract_store=memory_contracts,
        plan_store=memory_plans,
        review_log=memory_review_log,
        clock=deterministic_clock,
        locks=plan_locks,
    )
