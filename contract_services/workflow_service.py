"""
contract_services.workflow_service -- Business plan workflow orchestration.

Responsibility:
    Executes business plan (PAKD) transitions.  Thin coordinator: the pure
    approval engine decides, the financial engine computes the snapshot,
    the plan store persists and the review log records.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    May import from contract_engines/ and contract_kernel/.

Invariants enforced:
    - Single writer per plan: load -> decide -> persist runs under the
      plan's lock (in-process registry) and a row lock from the store.
    - Frozen snapshot: totals are computed and hashed when a plan leaves
      Draft; every later decision in the cycle reads that snapshot.
    - Terminal statuses accept no transition and append no log entry.
    - Failed transitions leave the plan untouched and append nothing.
    - One review log entry per successful transition.  A failed append
      does not undo the transition; it comes back as a warning.

Failure modes:
    - PlanNotFoundError, PlanClosedError, InvalidTransitionError,
      MissingRejectionReasonError, UnknownRoleError, UnknownActionError.
      A closed plan raises PlanClosedError before the role or action
      name is looked at.
    - ContractNotFoundError while freezing a snapshot.
    - OptimisticLockError / SnapshotTamperedError from the plan store.
    - LogAppendFailedError is returned in ``TransitionResult.warnings``,
      never raised.

Audit relevance:
    Every transition emits a structured ``plan_transitioned`` record with
    actor, from/to status and duration.  Auto-skips additionally emit
    ``plan_auto_approved`` and are logged under the Finance stage with the
    configured system marker.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any
from uuid import UUID, uuid4

from contract_engines.approval import (
    next_status,
    permitted_actions,
    reject_status,
    resolve_action,
    resolve_role,
    review_role_for,
)
from contract_engines.financials import compute_totals
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.financials import FinancialTotals
from contract_kernel.domain.plan import (
    ActorRole,
    BusinessPlan,
    PlanStatus,
    ReviewAction,
    ReviewLogEntry,
    ReviewRole,
    TransitionResult,
)
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.domain.stores import ContractStore, PlanStore, ReviewLogStore
from contract_kernel.exceptions import (
    ActivePlanExistsError,
    InvalidTransitionError,
    LogAppendFailedError,
    MissingRejectionReasonError,
    PlanClosedError,
    PlanNotFoundError,
)
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.services.plan_locks import DEFAULT_PLAN_LOCKS, PlanLockRegistry
from contract_kernel.services.plan_store import hash_snapshot

logger = get_logger("services.plan_workflow")


def _emit_transition_trace(
    plan: BusinessPlan,
    action: ReviewAction,
    actor_role: ActorRole,
    from_status: PlanStatus,
    auto_approved: bool,
    reason: str,
    duration_ms: float,
) -> None:
    record: dict[str, Any] = {
        "action": action.value,
        "actor_role": actor_role.value,
        "from_status": from_status.value,
        "to_status": plan.status.value,
        "auto_approved": auto_approved,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    logger.info("plan_transitioned", extra=record)
    if auto_approved:
        logger.info(
            "plan_auto_approved",
            extra={
                "profit_margin": plan.financials.profit_margin if plan.financials else None,
                "reason": reason,
            },
        )


class PlanWorkflowService:
    """Moves business plans through Draft -> Unit -> Finance -> Board review.

    Contract:
        Receives its stores by injection and never commits; the caller owns
        the transaction.  Roles may be ``ActorRole`` members or any role
        name known to ``settings.role_aliases``.
    """

    def __init__(
        self,
        contract_store: ContractStore,
        plan_store: PlanStore,
        review_log: ReviewLogStore,
        settings: WorkflowSettings | None = None,
        clock: Clock | None = None,
        locks: PlanLockRegistry | None = None,
    ) -> None:
        self._contracts = contract_store
        self._plans = plan_store
        self._review_log = review_log
        self._settings = settings or DEFAULT_SETTINGS
        self._clock = clock or SystemClock()
        self._locks = locks or DEFAULT_PLAN_LOCKS

    @property
    def settings(self) -> WorkflowSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def compute_contract_totals(self, contract_id: UUID) -> FinancialTotals:
        """Live totals for a contract from its current line items and costs."""
        return compute_totals(
            self._contracts.get_line_items(contract_id),
            self._contracts.get_execution_costs(contract_id),
            self._contracts.get_supplier_discount_percent(contract_id),
            vat_rate=self._settings.vat_rate,
            expert_keywords=self._settings.expert_cost_keywords,
        )

    def permitted_actions(
        self, plan_id: UUID, actor_role: str | ActorRole,
    ) -> frozenset[ReviewAction]:
        """Actions the role may currently take on the plan (for UI gating)."""
        role = resolve_role(actor_role, self._settings)
        plan = self._require_plan(plan_id)
        return permitted_actions(plan.status, role, self._is_admin_override(role))

    def list_by_plan(self, plan_id: UUID) -> list[ReviewLogEntry]:
        """Review history of a plan, oldest first."""
        return list(self._review_log.list_by_plan(plan_id))

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def open_plan(self, contract_id: UUID, actor_id: UUID) -> BusinessPlan:
        """Create the next Draft plan version for a contract.

        A previous Rejected plan is deactivated.  Any other active plan
        (in review or Approved) blocks the new version.

        Raises:
            ActivePlanExistsError: If an active plan is not Rejected.
        """
        with LogContext.bind(contract_id=str(contract_id), actor_id=str(actor_id)):
            existing = list(self._plans.list_for_contract(contract_id))
            for plan in existing:
                if plan.is_active and plan.status != PlanStatus.REJECTED:
                    raise ActivePlanExistsError(
                        str(contract_id), str(plan.plan_id), plan.status.value,
                    )

            for plan in existing:
                if plan.is_active:
                    with self._locks.hold(plan.plan_id):
                        self._plans.save(replace(plan, is_active=False))

            version = max((p.version for p in existing), default=0) + 1
            created = self._plans.create(
                BusinessPlan(
                    plan_id=uuid4(),
                    contract_id=contract_id,
                    status=PlanStatus.DRAFT,
                    version=version,
                    is_active=True,
                    created_by=actor_id,
                    created_at=self._clock.now(),
                )
            )
            logger.info(
                "plan_opened",
                extra={"plan_id": str(created.plan_id), "version": version},
            )
            return created

    def transition(
        self,
        plan_id: UUID,
        actor_id: UUID,
        actor_role: str | ActorRole,
        action: str | ReviewAction,
        comment: str | None = None,
    ) -> TransitionResult:
        """Apply one review action to a plan.

        Args:
            plan_id: The plan to act on.
            actor_id: The acting user.
            actor_role: Policy role or configured alias of the actor.
            action: Submit, Approve or Reject.
            comment: Reviewer comment; required (the reason) for Reject.

        Returns:
            TransitionResult with the persisted plan, the review log entry
            and any non-fatal warnings.
        """
        t0 = time.monotonic()
        with LogContext.bind(plan_id=str(plan_id), actor_id=str(actor_id)):
            with self._locks.hold(plan_id):
                plan = self._require_plan(plan_id, for_update=True)
                from_status = plan.status

                if plan.is_terminal:
                    logger.warning(
                        "plan_transition_on_closed_plan",
                        extra={
                            "status": from_status.value,
                            "action": getattr(action, "value", action),
                        },
                    )
                    raise PlanClosedError(from_status.value, str(plan_id))

                role = resolve_role(actor_role, self._settings)
                action = resolve_action(action)
                override = self._is_admin_override(role)
                if action == ReviewAction.REJECT:
                    updated, auto_approved, reason = self._reject(plan, role, comment, override)
                else:
                    updated, auto_approved, reason = self._advance(
                        plan, role, action, actor_id, override,
                    )

                saved = self._plans.save(updated)

                entry = ReviewLogEntry(
                    entry_id=uuid4(),
                    plan_id=saved.plan_id,
                    contract_id=saved.contract_id,
                    reviewer_id=actor_id,
                    role=ReviewRole.FINANCE if auto_approved else review_role_for(from_status),
                    actor_role=role,
                    action=action,
                    from_status=from_status,
                    to_status=saved.status,
                    comment=self._log_comment(action, comment, reason, auto_approved),
                    auto_approved=auto_approved,
                    created_at=self._clock.now(),
                )
                stored_entry, warnings = self._append_review(entry)

            _emit_transition_trace(
                plan=saved,
                action=action,
                actor_role=role,
                from_status=from_status,
                auto_approved=auto_approved,
                reason=reason,
                duration_ms=(time.monotonic() - t0) * 1000,
            )

        return TransitionResult(
            plan=saved,
            from_status=from_status,
            auto_approved=auto_approved,
            review_entry=stored_entry,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _reject(
        self,
        plan: BusinessPlan,
        role: ActorRole,
        comment: str | None,
        override: bool,
    ) -> tuple[BusinessPlan, bool, str]:
        try:
            decision = reject_status(plan.status, role, comment, override)
        except MissingRejectionReasonError:
            raise MissingRejectionReasonError(str(plan.plan_id)) from None
        return replace(plan, status=decision.next_status, notes=decision.reason), False, decision.reason

    def _advance(
        self,
        plan: BusinessPlan,
        role: ActorRole,
        action: ReviewAction,
        actor_id: UUID,
        override: bool,
    ) -> tuple[BusinessPlan, bool, str]:
        if action not in permitted_actions(plan.status, role, override):
            raise InvalidTransitionError(plan.status.value, role.value, action.value)

        frozen = self._frozen_snapshot(plan)
        decision = next_status(plan.status, role, frozen.financials, override, self._settings)

        updated = replace(frozen, status=decision.next_status)
        if decision.next_status == PlanStatus.APPROVED:
            updated = replace(updated, approved_by=actor_id, approved_at=self._clock.now())
        return updated, decision.auto_approved, decision.reason

    def _frozen_snapshot(self, plan: BusinessPlan) -> BusinessPlan:
        """Freeze totals on submission; reuse them for the rest of the cycle."""
        if plan.status != PlanStatus.DRAFT and plan.financials is not None:
            return plan
        totals = self.compute_contract_totals(plan.contract_id)
        logger.debug(
            "plan_snapshot_frozen",
            extra={
                "signing_value": totals.signing_value,
                "profit_margin": totals.profit_margin,
                "expert_hiring_amount": totals.expert_hiring_amount,
            },
        )
        return replace(plan, financials=totals, financials_hash=hash_snapshot(totals))

    def _append_review(
        self, entry: ReviewLogEntry,
    ) -> tuple[ReviewLogEntry | None, tuple[Exception, ...]]:
        try:
            return self._review_log.append(entry), ()
        except Exception as exc:  # noqa: BLE001
            warning = LogAppendFailedError(
                str(entry.plan_id),
                entry.from_status.value,
                entry.to_status.value,
                f"{type(exc).__name__}: {exc}",
            )
            logger.warning(
                "review_log_append_failed",
                exc_info=True,
                extra={
                    "from_status": entry.from_status.value,
                    "to_status": entry.to_status.value,
                },
            )
            return None, (warning,)

    def _log_comment(
        self,
        action: ReviewAction,
        comment: str | None,
        reason: str,
        auto_approved: bool,
    ) -> str:
        text = (comment or "").strip()
        if action == ReviewAction.REJECT:
            return reason
        if auto_approved:
            marked = f"{self._settings.system_comment_prefix} {reason}"
            return f"{marked} | {text}" if text else marked
        if text:
            return text
        if action == ReviewAction.SUBMIT:
            return "Submitted for review"
        return reason

    def _is_admin_override(self, role: ActorRole) -> bool:
        return self._settings.admin_override_enabled and role == ActorRole.ADMIN

    def _require_plan(self, plan_id: UUID, *, for_update: bool = False) -> BusinessPlan:
        plan = self._plans.get(plan_id, for_update=for_update)
        if plan is None:
            raise PlanNotFoundError(str(plan_id))
        return plan
