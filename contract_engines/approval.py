"""
contract_engines.approval -- Pure business plan approval policy.

Responsibility:
    Decide, for a plan in a given review stage, whether an actor role may
    act on it and which stage comes next, including the Board auto-skip
    shortcut for high-margin plans without expert hiring.

Architecture position:
    Engines -- pure decision layer, zero I/O.
    May only import contract_kernel/domain/ types and kernel exceptions.

Invariants enforced:
    - Single authorization table: every role check goes through
      ``AUTHORIZATION_TABLE``; the admin bypass is an explicit flag.
    - Monotonic stages: a plan advances exactly one step along
      ``STAGE_SEQUENCE``; the only skip is Pending_Finance -> Approved.
    - Auto-skip reads only the totals it is given (the frozen snapshot).
    - Terminal statuses accept nothing.

Failure modes:
    - PlanClosedError when the current status is Approved or Rejected.
    - InvalidTransitionError when the role/action pair is not permitted.
    - MissingRejectionReasonError on a blank rejection reason.
    - UnknownRoleError from ``resolve_role`` for unmapped role names.
    - UnknownActionError from ``resolve_action`` for unknown action names.
"""

from __future__ import annotations

from decimal import Decimal

from contract_kernel.domain.financials import ZERO, FinancialTotals
from contract_kernel.domain.plan import (
    PENDING_STATUSES,
    STAGE_SEQUENCE,
    TERMINAL_PLAN_STATUSES,
    ActorRole,
    ApprovalDecision,
    PlanStatus,
    ReviewAction,
    ReviewRole,
)
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.exceptions import (
    InvalidTransitionError,
    MissingRejectionReasonError,
    PlanClosedError,
    UnknownActionError,
    UnknownRoleError,
)

_ADVANCE = frozenset({ReviewAction.SUBMIT, ReviewAction.APPROVE})
_REVIEW = frozenset({ReviewAction.APPROVE, ReviewAction.REJECT})

# (status, role) -> actions that role may take on a plan in that status
AUTHORIZATION_TABLE: dict[tuple[PlanStatus, ActorRole], frozenset[ReviewAction]] = {
    (PlanStatus.DRAFT, ActorRole.SALES): _ADVANCE,
    (PlanStatus.DRAFT, ActorRole.UNIT_LEAD): _ADVANCE,
    (PlanStatus.PENDING_UNIT, ActorRole.UNIT_LEAD): _REVIEW,
    (PlanStatus.PENDING_FINANCE, ActorRole.ACCOUNTANT): _REVIEW,
    (PlanStatus.PENDING_BOARD, ActorRole.BOARD): _REVIEW,
}

# Actions available to an admin override, per status
_OVERRIDE_ACTIONS: dict[PlanStatus, frozenset[ReviewAction]] = {
    PlanStatus.DRAFT: _ADVANCE,
    PlanStatus.PENDING_UNIT: _REVIEW,
    PlanStatus.PENDING_FINANCE: _REVIEW,
    PlanStatus.PENDING_BOARD: _REVIEW,
}

_REVIEW_ROLE_BY_STATUS: dict[PlanStatus, ReviewRole] = {
    PlanStatus.DRAFT: ReviewRole.UNIT,
    PlanStatus.PENDING_UNIT: ReviewRole.UNIT,
    PlanStatus.PENDING_FINANCE: ReviewRole.FINANCE,
    PlanStatus.PENDING_BOARD: ReviewRole.BOARD,
}


def permitted_actions(
    status: PlanStatus,
    actor_role: ActorRole,
    is_admin_override: bool = False,
) -> frozenset[ReviewAction]:
    """Actions ``actor_role`` may take on a plan in ``status``.

    Terminal statuses permit nothing, override or not.
    """
    if status in TERMINAL_PLAN_STATUSES:
        return frozenset()
    if is_admin_override:
        return _OVERRIDE_ACTIONS.get(status, frozenset())
    return AUTHORIZATION_TABLE.get((status, actor_role), frozenset())


def authorize(
    status: PlanStatus,
    actor_role: ActorRole,
    action: ReviewAction,
    is_admin_override: bool = False,
) -> None:
    """Raise unless ``actor_role`` may take ``action`` in ``status``."""
    if status in TERMINAL_PLAN_STATUSES:
        raise PlanClosedError(status.value)
    if action not in permitted_actions(status, actor_role, is_admin_override):
        raise InvalidTransitionError(status.value, actor_role.value, action.value)


def qualifies_for_auto_skip(
    totals: FinancialTotals | None,
    threshold: Decimal = DEFAULT_SETTINGS.auto_skip_margin_threshold,
) -> bool:
    """Whether a plan may skip Board review.

    Requires a positive signing value, a margin at or above ``threshold``
    and no expert hiring cost with a positive amount.
    """
    if totals is None or totals.signing_value <= ZERO:
        return False
    if totals.has_expert_hiring:
        return False
    return totals.profit_margin >= threshold


def next_status(
    current_status: PlanStatus,
    actor_role: ActorRole,
    totals: FinancialTotals | None,
    is_admin_override: bool = False,
    settings: WorkflowSettings | None = None,
) -> ApprovalDecision:
    """Decide the stage a plan advances to when ``actor_role`` approves it.

    Args:
        current_status: The plan's current stage.
        actor_role: Role of the acting user.
        totals: The plan's frozen financial snapshot.
        is_admin_override: Bypass role gating (one stage at a time).
        settings: Workflow settings; defaults apply when omitted.

    Returns:
        ApprovalDecision with ``next_status`` and ``auto_approved``.

    Raises:
        PlanClosedError: If ``current_status`` is terminal.
        InvalidTransitionError: If the role may not approve this stage.
    """
    settings = settings or DEFAULT_SETTINGS
    authorize(current_status, actor_role, ReviewAction.APPROVE, is_admin_override)

    following = STAGE_SEQUENCE[STAGE_SEQUENCE.index(current_status) + 1]

    if current_status == PlanStatus.PENDING_FINANCE:
        threshold = settings.auto_skip_margin_threshold
        if qualifies_for_auto_skip(totals, threshold):
            return ApprovalDecision(
                next_status=PlanStatus.APPROVED,
                auto_approved=True,
                reason=(
                    f"Auto-approved: margin {_fmt_pct(totals.profit_margin)}% "
                    f">= {threshold}% with no expert hiring"
                ),
            )
        return ApprovalDecision(
            next_status=following,
            reason=_board_review_reason(totals, threshold),
        )

    return ApprovalDecision(
        next_status=following,
        reason=f"Advanced from {current_status.value} to {following.value}",
    )


def reject_status(
    current_status: PlanStatus,
    actor_role: ActorRole,
    reason: str | None,
    is_admin_override: bool = False,
) -> ApprovalDecision:
    """Validate a rejection and return the Rejected decision.

    Raises:
        PlanClosedError: If ``current_status`` is terminal.
        InvalidTransitionError: If the role may not reject, or the plan
            is not in a Pending_* stage.
        MissingRejectionReasonError: If an authorized rejection has a
            blank ``reason``.
    """
    if current_status in TERMINAL_PLAN_STATUSES:
        raise PlanClosedError(current_status.value)
    if current_status not in PENDING_STATUSES:
        raise InvalidTransitionError(
            current_status.value, actor_role.value, ReviewAction.REJECT.value,
        )
    authorize(current_status, actor_role, ReviewAction.REJECT, is_admin_override)
    if not reason or not reason.strip():
        raise MissingRejectionReasonError()
    return ApprovalDecision(next_status=PlanStatus.REJECTED, reason=reason.strip())


def review_role_for(status: PlanStatus) -> ReviewRole:
    """Review stage a transition out of ``status`` is attributed to."""
    try:
        return _REVIEW_ROLE_BY_STATUS[status]
    except KeyError:
        raise PlanClosedError(status.value) from None


def resolve_role(
    role_name: str | ActorRole,
    settings: WorkflowSettings | None = None,
) -> ActorRole:
    """Map a role name (policy role or configured alias) to an ActorRole."""
    if isinstance(role_name, ActorRole):
        return role_name
    settings = settings or DEFAULT_SETTINGS
    name = (role_name or "").strip()
    target = settings.role_aliases.get(name, name)
    try:
        return ActorRole(target)
    except ValueError:
        raise UnknownRoleError(role_name) from None


def resolve_action(action_name: str | ReviewAction) -> ReviewAction:
    """Map an action name to a ReviewAction, e.g. ``"Approve"``."""
    if isinstance(action_name, ReviewAction):
        return action_name
    try:
        return ReviewAction((action_name or "").strip())
    except (ValueError, AttributeError):
        raise UnknownActionError(str(action_name)) from None


def _board_review_reason(totals: FinancialTotals | None, threshold: Decimal) -> str:
    if totals is None:
        return "Board review required: no financial snapshot"
    if totals.has_expert_hiring:
        return (
            f"Board review required: expert hiring cost "
            f"{totals.expert_hiring_amount} present"
        )
    return (
        f"Board review required: margin {_fmt_pct(totals.profit_margin)}% "
        f"below {threshold}%"
    )


def _fmt_pct(value: Decimal) -> str:
    return f"{value:.2f}"
