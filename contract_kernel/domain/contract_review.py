"""
Contract review domain types (``contract_kernel.domain.contract_review``).

Responsibility
--------------
Pure value objects for the review a contract goes through before it is
signed: legal review, finance review, submission for signature and the
signature itself.  This cycle is independent of the business plan
workflow; it shares the actor roles and the reviewer-comment audit trail.

Invariants enforced
-------------------
* ``CONTRACT_STAGE_SEQUENCE`` is the only forward order.  Rejections send
  a contract back to Draft; nothing else moves backwards.
* Active (signed) is the only terminal status.
* ``ContractReviewEntry`` is frozen; entries are appended, never edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from contract_kernel.domain.plan import ActorRole


class ContractStatus(str, Enum):
    """Contract review stages."""

    DRAFT = "Draft"
    PENDING_LEGAL = "Pending_Legal"
    PENDING_FINANCE = "Pending_Finance"
    FINANCE_APPROVED = "Finance_Approved"
    PENDING_SIGN = "Pending_Sign"
    ACTIVE = "Active"


CONTRACT_STAGE_SEQUENCE: tuple[ContractStatus, ...] = (
    ContractStatus.DRAFT,
    ContractStatus.PENDING_LEGAL,
    ContractStatus.PENDING_FINANCE,
    ContractStatus.FINANCE_APPROVED,
    ContractStatus.PENDING_SIGN,
    ContractStatus.ACTIVE,
)

TERMINAL_CONTRACT_STATUSES: frozenset[ContractStatus] = frozenset({ContractStatus.ACTIVE})


class ContractReviewAction(str, Enum):
    """Actions an actor can request on a contract under review."""

    SUBMIT = "Submit"
    APPROVE = "Approve"
    REJECT = "Reject"
    SIGN = "Sign"


class ContractReviewRole(str, Enum):
    """Review stage a contract review entry is attributed to."""

    SALES = "Sales"
    LEGAL = "Legal"
    FINANCE = "Finance"
    BOARD = "Board"


@dataclass(frozen=True)
class ContractState:
    """Review state of one contract."""

    contract_id: UUID
    status: ContractStatus = ContractStatus.DRAFT
    draft_url: str | None = None
    signed_date: date | None = None
    signed_by: UUID | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CONTRACT_STATUSES


@dataclass(frozen=True)
class ContractReviewEntry:
    """Record of a single contract review transition. Immutable."""

    entry_id: UUID
    contract_id: UUID
    reviewer_id: UUID
    role: ContractReviewRole
    actor_role: ActorRole
    action: ContractReviewAction
    from_status: ContractStatus
    to_status: ContractStatus
    comment: str = ""
    sequence: int = 0
    created_at: datetime | None = None


@dataclass(frozen=True)
class ContractReviewDecision:
    """Outcome of the contract review policy for one action."""

    next_status: ContractStatus
    review_role: ContractReviewRole
    reason: str = ""


@dataclass(frozen=True)
class ContractPermissions:
    """Which review steps an actor may take on a contract right now."""

    can_submit: bool = False
    can_review_legal: bool = False
    can_review_finance: bool = False
    can_submit_sign: bool = False
    can_sign: bool = False


@dataclass(frozen=True)
class ContractTransitionResult:
    """Result of executing a contract review transition.

    ``warnings`` carries a failed review log append; the status change
    it accompanies is kept.
    """

    contract: ContractState
    from_status: ContractStatus
    review_entry: ContractReviewEntry | None = None
    warnings: tuple[Exception, ...] = field(default_factory=tuple)
