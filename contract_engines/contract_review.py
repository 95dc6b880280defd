"""
contract_engines.contract_review -- Pure contract review policy.

Responsibility:
    Decide whether an actor role may take a review action on a contract in
    a given status and which status follows.  The cycle is
    Draft -> Pending_Legal -> Pending_Finance -> Finance_Approved ->
    Pending_Sign -> Active, with legal and finance rejections returning the
    contract to Draft.

Architecture position:
    Engines -- pure decision layer, zero I/O.
    May only import contract_kernel/domain/ types and kernel exceptions.

Invariants enforced:
    - Single authorization table: every role check goes through
      ``CONTRACT_REVIEW_TABLE``; the admin bypass is an explicit flag.
    - ``CONTRACT_TRANSITIONS`` lists every legal (status, action) pair and
      its target.  Nothing else moves a contract.
    - Active contracts accept nothing.
    - A rejection is authorized before its reason is checked.

Failure modes:
    - ContractClosedError when the contract is Active.
    - InvalidContractTransitionError when the role/action pair is not
      permitted in the current status.
    - MissingRejectionReasonError on an authorized rejection with a blank
      reason.
    - UnknownActionError from ``resolve_contract_action``.
"""

from __future__ import annotations

from contract_kernel.domain.contract_review import (
    TERMINAL_CONTRACT_STATUSES,
    ContractPermissions,
    ContractReviewAction,
    ContractReviewDecision,
    ContractReviewRole,
    ContractStatus,
)
from contract_kernel.domain.plan import ActorRole
from contract_kernel.exceptions import (
    ContractClosedError,
    InvalidContractTransitionError,
    MissingRejectionReasonError,
    UnknownActionError,
)

_SUBMIT = frozenset({ContractReviewAction.SUBMIT})
_REVIEW = frozenset({ContractReviewAction.APPROVE, ContractReviewAction.REJECT})
_SIGN = frozenset({ContractReviewAction.SIGN})

# (status, role) -> actions that role may take on a contract in that status.
# The Board may stand in for Legal and Finance reviewers.
CONTRACT_REVIEW_TABLE: dict[tuple[ContractStatus, ActorRole], frozenset[ContractReviewAction]] = {
    (ContractStatus.DRAFT, ActorRole.SALES): _SUBMIT,
    (ContractStatus.DRAFT, ActorRole.UNIT_LEAD): _SUBMIT,
    (ContractStatus.PENDING_LEGAL, ActorRole.LEGAL): _REVIEW,
    (ContractStatus.PENDING_LEGAL, ActorRole.BOARD): _REVIEW,
    (ContractStatus.PENDING_FINANCE, ActorRole.ACCOUNTANT): _REVIEW,
    (ContractStatus.PENDING_FINANCE, ActorRole.BOARD): _REVIEW,
    (ContractStatus.FINANCE_APPROVED, ActorRole.BOARD): _SUBMIT,
    (ContractStatus.PENDING_SIGN, ActorRole.BOARD): _SIGN,
}

_OVERRIDE_ACTIONS: dict[ContractStatus, frozenset[ContractReviewAction]] = {
    ContractStatus.DRAFT: _SUBMIT,
    ContractStatus.PENDING_LEGAL: _REVIEW,
    ContractStatus.PENDING_FINANCE: _REVIEW,
    ContractStatus.FINANCE_APPROVED: _SUBMIT,
    ContractStatus.PENDING_SIGN: _SIGN,
}

CONTRACT_TRANSITIONS: dict[tuple[ContractStatus, ContractReviewAction], ContractStatus] = {
    (ContractStatus.DRAFT, ContractReviewAction.SUBMIT): ContractStatus.PENDING_LEGAL,
    (ContractStatus.PENDING_LEGAL, ContractReviewAction.APPROVE): ContractStatus.PENDING_FINANCE,
    (ContractStatus.PENDING_LEGAL, ContractReviewAction.REJECT): ContractStatus.DRAFT,
    (ContractStatus.PENDING_FINANCE, ContractReviewAction.APPROVE): ContractStatus.FINANCE_APPROVED,
    (ContractStatus.PENDING_FINANCE, ContractReviewAction.REJECT): ContractStatus.DRAFT,
    (ContractStatus.FINANCE_APPROVED, ContractReviewAction.SUBMIT): ContractStatus.PENDING_SIGN,
    (ContractStatus.PENDING_SIGN, ContractReviewAction.SIGN): ContractStatus.ACTIVE,
}

_REVIEW_ROLE_BY_STATUS: dict[ContractStatus, ContractReviewRole] = {
    ContractStatus.DRAFT: ContractReviewRole.SALES,
    ContractStatus.PENDING_LEGAL: ContractReviewRole.LEGAL,
    ContractStatus.PENDING_FINANCE: ContractReviewRole.FINANCE,
    ContractStatus.FINANCE_APPROVED: ContractReviewRole.BOARD,
    ContractStatus.PENDING_SIGN: ContractReviewRole.BOARD,
}


def contract_permitted_actions(
    status: ContractStatus,
    actor_role: ActorRole,
    is_admin_override: bool = False,
) -> frozenset[ContractReviewAction]:
    """Actions ``actor_role`` may take on a contract in ``status``."""
    if status in TERMINAL_CONTRACT_STATUSES:
        return frozenset()
    if is_admin_override:
        return _OVERRIDE_ACTIONS.get(status, frozenset())
    return CONTRACT_REVIEW_TABLE.get((status, actor_role), frozenset())


def authorize_contract_action(
    status: ContractStatus,
    actor_role: ActorRole,
    action: ContractReviewAction,
    is_admin_override: bool = False,
) -> None:
    """Raise unless ``actor_role`` may take ``action`` in ``status``."""
    if status in TERMINAL_CONTRACT_STATUSES:
        raise ContractClosedError(status.value)
    if action not in contract_permitted_actions(status, actor_role, is_admin_override):
        raise InvalidContractTransitionError(status.value, actor_role.value, action.value)


def next_contract_status(
    current_status: ContractStatus,
    actor_role: ActorRole,
    action: ContractReviewAction,
    reason: str | None = None,
    is_admin_override: bool = False,
) -> ContractReviewDecision:
    """Decide where a contract goes when ``actor_role`` takes ``action``.

    Args:
        current_status: The contract's current review status.
        actor_role: Role of the acting user.
        action: Requested review action.
        reason: Reviewer comment; required for Reject.
        is_admin_override: Bypass role gating (one step at a time).

    Returns:
        ContractReviewDecision with the next status and the review stage
        the action is recorded under.

    Raises:
        ContractClosedError: If the contract is Active.
        InvalidContractTransitionError: If the role may not take ``action``.
        MissingRejectionReasonError: If an authorized Reject has no reason.
    """
    authorize_contract_action(current_status, actor_role, action, is_admin_override)

    following = CONTRACT_TRANSITIONS[(current_status, action)]
    review_role = _REVIEW_ROLE_BY_STATUS[current_status]
    if action == ContractReviewAction.REJECT:
        if not reason or not reason.strip():
            raise MissingRejectionReasonError()
        return ContractReviewDecision(following, review_role, reason.strip())
    return ContractReviewDecision(
        following,
        review_role,
        f"{action.value}: {current_status.value} -> {following.value}",
    )


def contract_permissions(
    status: ContractStatus,
    actor_role: ActorRole,
    is_admin_override: bool = False,
) -> ContractPermissions:
    """UI flags for the review steps open to ``actor_role``."""
    actions = contract_permitted_actions(status, actor_role, is_admin_override)
    return ContractPermissions(
        can_submit=status == ContractStatus.DRAFT and ContractReviewAction.SUBMIT in actions,
        can_review_legal=status == ContractStatus.PENDING_LEGAL and bool(actions & _REVIEW),
        can_review_finance=status == ContractStatus.PENDING_FINANCE and bool(actions & _REVIEW),
        can_submit_sign=(
            status == ContractStatus.FINANCE_APPROVED
            and ContractReviewAction.SUBMIT in actions
        ),
        can_sign=ContractReviewAction.SIGN in actions,
    )


def contract_review_role_for(status: ContractStatus) -> ContractReviewRole:
    """Review stage an action on a contract in ``status`` is recorded under."""
    try:
        return _REVIEW_ROLE_BY_STATUS[status]
    except KeyError:
        raise ContractClosedError(status.value) from None


def resolve_contract_action(action_name: str | ContractReviewAction) -> ContractReviewAction:
    """Map an action name such as ``"Sign"`` to a ContractReviewAction."""
    if isinstance(action_name, ContractReviewAction):
        return action_name
    try:
        return ContractReviewAction((action_name or "").strip())
    except (ValueError, AttributeError):
        raise UnknownActionError(str(action_name)) from None
