"""
contract_services.contract_review_service -- Contract review orchestration.

Responsibility:
    Executes contract review transitions (submit for legal review, legal
    and finance decisions, submit for signature, sign).  The pure contract
    review engine decides; the state store persists; the review log
    records who did what.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    May import from contract_engines/ and contract_kernel/.

Invariants enforced:
    - Single writer per contract: load -> decide -> persist runs under the
      contract's lock and a row lock from the state store.
    - Active contracts accept no transition and append no log entry.
    - Failed transitions leave the contract untouched and append nothing.
    - One review entry per successful transition.  A failed append comes
      back as a warning; the status change is kept.

Failure modes:
    - ContractNotFoundError, ContractClosedError,
      InvalidContractTransitionError, MissingRejectionReasonError,
      UnknownRoleError, UnknownActionError.
    - OptimisticLockError from the state store.
"""

from __future__ import annotations

import time
from dataclasses import replace
from uuid import UUID, uuid4

from contract_engines.approval import resolve_role
from contract_engines.contract_review import (
    contract_permissions,
    contract_permitted_actions,
    next_contract_status,
    resolve_contract_action,
)
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.contract_review import (
    ContractPermissions,
    ContractReviewAction,
    ContractReviewEntry,
    ContractState,
    ContractStatus,
    ContractTransitionResult,
)
from contract_kernel.domain.plan import ActorRole
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.domain.stores import ContractReviewLogStore, ContractStateStore
from contract_kernel.exceptions import (
    ContractClosedError,
    ContractNotFoundError,
    LogAppendFailedError,
    MissingRejectionReasonError,
)
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.services.plan_locks import DEFAULT_CONTRACT_LOCKS, PlanLockRegistry

logger = get_logger("services.contract_review")


class ContractReviewService:
    """Moves contracts through legal review, finance review and signature.

    Contract:
        Receives its stores by injection and never commits.  Roles may be
        ``ActorRole`` members or aliases from ``settings.role_aliases``.
    """

    def __init__(
        self,
        contract_states: ContractStateStore,
        review_log: ContractReviewLogStore,
        settings: WorkflowSettings | None = None,
        clock: Clock | None = None,
        locks: PlanLockRegistry | None = None,
    ) -> None:
        self._states = contract_states
        self._review_log = review_log
        self._settings = settings or DEFAULT_SETTINGS
        self._clock = clock or SystemClock()
        self._locks = locks or DEFAULT_CONTRACT_LOCKS

    def permissions(self, contract_id: UUID, actor_role: str | ActorRole) -> ContractPermissions:
        """Review steps the role may currently take (for UI gating)."""
        role = resolve_role(actor_role, self._settings)
        state = self._require_state(contract_id)
        return contract_permissions(state.status, role, self._is_admin_override(role))

    def permitted_actions(
        self, contract_id: UUID, actor_role: str | ActorRole,
    ) -> frozenset[ContractReviewAction]:
        role = resolve_role(actor_role, self._settings)
        state = self._require_state(contract_id)
        return contract_permitted_actions(state.status, role, self._is_admin_override(role))

    def list_reviews(self, contract_id: UUID) -> list[ContractReviewEntry]:
        """Review history of a contract, oldest first."""
        return list(self._review_log.list_by_contract(contract_id))

    def transition(
        self,
        contract_id: UUID,
        actor_id: UUID,
        actor_role: str | ActorRole,
        action: str | ContractReviewAction,
        comment: str | None = None,
        draft_url: str | None = None,
    ) -> ContractTransitionResult:
        """Apply one review action to a contract.

        Args:
            contract_id: The contract to act on.
            actor_id: The acting user.
            actor_role: Policy role or configured alias of the actor.
            action: Submit, Approve, Reject or Sign.
            comment: Reviewer comment; required (the reason) for Reject.
            draft_url: Link to the contract draft, recorded on the first
                submission.  Ignored for other actions.

        Returns:
            ContractTransitionResult with the persisted state, the review
            entry and any non-fatal warnings.
        """
        t0 = time.monotonic()
        with LogContext.bind(contract_id=str(contract_id), actor_id=str(actor_id)):
            with self._locks.hold(contract_id):
                state = self._require_state(contract_id, for_update=True)
                from_status = state.status

                if state.is_terminal:
                    logger.warning(
                        "contract_transition_on_closed_contract",
                        extra={"status": from_status.value},
                    )
                    raise ContractClosedError(from_status.value, str(contract_id))

                role = resolve_role(actor_role, self._settings)
                action = resolve_contract_action(action)
                try:
                    decision = next_contract_status(
                        from_status, role, action, comment, self._is_admin_override(role),
                    )
                except MissingRejectionReasonError:
                    raise MissingRejectionReasonError(contract_id=str(contract_id)) from None

                saved = self._states.save(
                    self._apply(state, decision.next_status, action, actor_id, draft_url)
                )

                entry = ContractReviewEntry(
                    entry_id=uuid4(),
                    contract_id=contract_id,
                    reviewer_id=actor_id,
                    role=decision.review_role,
                    actor_role=role,
                    action=action,
                    from_status=from_status,
                    to_status=saved.status,
                    comment=self._log_comment(action, comment, decision.reason),
                    created_at=self._clock.now(),
                )
                stored_entry, warnings = self._append_review(entry)

            logger.info(
                "contract_transitioned",
                extra={
                    "action": action.value,
                    "actor_role": role.value,
                    "from_status": from_status.value,
                    "to_status": saved.status.value,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 3),
                },
            )

        return ContractTransitionResult(
            contract=saved,
            from_status=from_status,
            review_entry=stored_entry,
            warnings=warnings,
        )

    def _apply(
        self,
        state: ContractState,
        next_status: ContractStatus,
        action: ContractReviewAction,
        actor_id: UUID,
        draft_url: str | None,
    ) -> ContractState:
        updated = replace(state, status=next_status)
        if state.status == ContractStatus.DRAFT and draft_url:
            updated = replace(updated, draft_url=draft_url)
        if action == ContractReviewAction.SIGN:
            updated = replace(updated, signed_date=self._clock.now().date(), signed_by=actor_id)
        return updated

    def _append_review(
        self, entry: ContractReviewEntry,
    ) -> tuple[ContractReviewEntry | None, tuple[Exception, ...]]:
        try:
            return self._review_log.append(entry), ()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "contract_review_append_failed",
                exc_info=True,
                extra={
                    "from_status": entry.from_status.value,
                    "to_status": entry.to_status.value,
                },
            )
            warning = LogAppendFailedError(
                None,
                entry.from_status.value,
                entry.to_status.value,
                f"{type(exc).__name__}: {exc}",
                contract_id=str(entry.contract_id),
            )
            return None, (warning,)

    @staticmethod
    def _log_comment(action: ContractReviewAction, comment: str | None, reason: str) -> str:
        if action == ContractReviewAction.REJECT:
            return reason
        return (comment or "").strip() or reason

    def _is_admin_override(self, role: ActorRole) -> bool:
        return self._settings.admin_override_enabled and role == ActorRole.ADMIN

    def _require_state(self, contract_id: UUID, *, for_update: bool = False) -> ContractState:
        state = self._states.get(contract_id, for_update=for_update)
        if state is None:
            raise ContractNotFoundError(str(contract_id))
        return state
