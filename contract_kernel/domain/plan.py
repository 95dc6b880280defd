"""
Business plan domain types (``contract_kernel.domain.plan``).

Responsibility
--------------
Pure value objects for the business plan (PAKD) approval workflow: the
plan lifecycle states, actor and review roles, review actions, the plan
record itself, immutable review log entries, and decision/transition
results.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import
only from sibling domain modules.

Invariants enforced
-------------------
* ``STAGE_SEQUENCE`` defines the only forward order of review stages.
* Terminal statuses (Approved, Rejected) have no outgoing transitions.
* ``ReviewLogEntry`` is frozen; entries are appended, never edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from contract_kernel.domain.financials import FinancialTotals


# =========================================================================
# Plan Status Lifecycle
# =========================================================================


class PlanStatus(str, Enum):
    """Business plan review stages."""

    DRAFT = "Draft"
    PENDING_UNIT = "Pending_Unit"
    PENDING_FINANCE = "Pending_Finance"
    PENDING_BOARD = "Pending_Board"
    APPROVED = "Approved"
    REJECTED = "Rejected"


STAGE_SEQUENCE: tuple[PlanStatus, ...] = (
    PlanStatus.DRAFT,
    PlanStatus.PENDING_UNIT,
    PlanStatus.PENDING_FINANCE,
    PlanStatus.PENDING_BOARD,
    PlanStatus.APPROVED,
)

PENDING_STATUSES: frozenset[PlanStatus] = frozenset({
    PlanStatus.PENDING_UNIT,
    PlanStatus.PENDING_FINANCE,
    PlanStatus.PENDING_BOARD,
})

TERMINAL_PLAN_STATUSES: frozenset[PlanStatus] = frozenset({
    PlanStatus.APPROVED,
    PlanStatus.REJECTED,
})


# =========================================================================
# Roles and Actions
# =========================================================================


class ActorRole(str, Enum):
    """Roles recognized by the approval policy."""

    SALES = "Sales"
    UNIT_LEAD = "UnitLead"
    ACCOUNTANT = "Accountant"
    BOARD = "Board"
    ADMIN = "Admin"
    # Reviews contracts only; has no business plan actions.
    LEGAL = "Legal"


class ReviewRole(str, Enum):
    """Review stage a log entry is attributed to."""

    UNIT = "Unit"
    FINANCE = "Finance"
    BOARD = "Board"


class ReviewAction(str, Enum):
    """Actions an actor can request on a plan."""

    SUBMIT = "Submit"
    APPROVE = "Approve"
    REJECT = "Reject"


# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class BusinessPlan:
    """Snapshot of a business plan as loaded from the plan store.

    ``financials`` is frozen at submission and reused by every later
    decision in the same review cycle.
    """

    plan_id: UUID
    contract_id: UUID
    status: PlanStatus = PlanStatus.DRAFT
    version: int = 1
    is_active: bool = True
    financials: FinancialTotals | None = None
    financials_hash: str | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    notes: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PLAN_STATUSES


@dataclass(frozen=True)
class ReviewLogEntry:
    """Record of a single plan transition. Immutable."""

    entry_id: UUID
    plan_id: UUID
    contract_id: UUID
    reviewer_id: UUID
    role: ReviewRole
    actor_role: ActorRole
    action: ReviewAction
    from_status: PlanStatus
    to_status: PlanStatus
    comment: str = ""
    auto_approved: bool = False
    sequence: int = 0
    created_at: datetime | None = None


# =========================================================================
# Decision and Transition Results
# =========================================================================


@dataclass(frozen=True)
class ApprovalDecision:
    """Result of evaluating the approval policy for one transition."""

    next_status: PlanStatus
    auto_approved: bool = False
    reason: str = ""


@dataclass(frozen=True)
class TransitionResult:
    """Result of executing a workflow transition.

    ``warnings`` carries non-fatal errors (a failed review log append)
    that did not undo the persisted status change.
    """

    plan: BusinessPlan
    from_status: PlanStatus
    auto_approved: bool = False
    review_entry: ReviewLogEntry | None = None
    warnings: tuple[Exception, ...] = field(default_factory=tuple)
