"""
Typed exception hierarchy for the contract approval core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, UI actions) must react to workflow failures without
parsing message strings.  Every error therefore has:
  1. its own class (catch by type, not message),
  2. a ``code`` class attribute (machine-readable, API-safe),
  3. structured attributes carrying the data behind the message.

Example:
    try:
        workflow.transition(plan_id, actor_id, ActorRole.BOARD, ReviewAction.APPROVE)
    except InvalidTransitionError as e:
        api_response(code=e.code, status=e.current_status, role=e.actor_role)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ContractCoreError (base)
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- PlanClosedError
    |   +-- MissingRejectionReasonError
    |   +-- ActivePlanExistsError
    |   +-- UnknownRoleError
    |   +-- UnknownActionError
    |   +-- InvalidContractTransitionError
    |   +-- ContractClosedError
    |
    +-- NotFoundError
    |   +-- PlanNotFoundError
    |   +-- ContractNotFoundError
    |
    +-- AuditError
    |   +-- LogAppendFailedError
    |   +-- SnapshotTamperedError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-----------------------------------------
Workflow     | INVALID_TRANSITION        | Role not authorized for current status
             | PLAN_CLOSED               | Plan is Approved or Rejected
             | MISSING_REJECTION_REASON  | Reject called with empty comment
             | ACTIVE_PLAN_EXISTS        | New plan opened over a live one
             | UNKNOWN_ROLE              | Role name not in roles or aliases
             | UNKNOWN_ACTION            | Action name not a known review action
             | INVALID_CONTRACT_TRANSITION | Role may not act on contract status
             | CONTRACT_CLOSED           | Contract is already Active (signed)
-------------|---------------------------|-----------------------------------------
Not found    | PLAN_NOT_FOUND            | Plan ID doesn't exist
             | CONTRACT_NOT_FOUND        | Contract ID doesn't exist
-------------|---------------------------|-----------------------------------------
Audit        | LOG_APPEND_FAILED         | Review log append failed after commit
             | SNAPSHOT_TAMPERED         | Frozen financials hash mismatch
-------------|---------------------------|-----------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT  | Concurrent modification detected
-------------|---------------------------|-----------------------------------------
Immutability | IMMUTABILITY_VIOLATION    | Update/delete of a review log entry

``LogAppendFailedError`` is never raised out of the workflow service: it is
returned in ``TransitionResult.warnings`` because the plan change it
accompanies has already been persisted.
"""


class ContractCoreError(Exception):
    """
    Base exception for all contract core errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "CONTRACT_CORE_ERROR"


# Workflow exceptions


class WorkflowError(ContractCoreError):
    """Base exception for approval workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Actor role is not authorized to act on the plan's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, current_status: str, actor_role: str, action: str):
        self.current_status = current_status
        self.actor_role = actor_role
        self.action = action
        super().__init__(
            f"Role {actor_role} may not {action} a plan in status {current_status}"
        )


class PlanClosedError(WorkflowError):
    """Plan is in a terminal status and accepts no further transitions."""

    code: str = "PLAN_CLOSED"

    def __init__(self, status: str, plan_id: str | None = None):
        self.status = status
        self.plan_id = plan_id
        subject = f"Plan {plan_id}" if plan_id else "Plan"
        super().__init__(f"{subject} is closed (status={status})")


class MissingRejectionReasonError(WorkflowError):
    """Reject requested without a non-empty reason."""

    code: str = "MISSING_REJECTION_REASON"

    def __init__(self, plan_id: str | None = None, contract_id: str | None = None):
        self.plan_id = plan_id
        self.contract_id = contract_id
        if plan_id:
            subject = f"plan {plan_id}"
        elif contract_id:
            subject = f"contract {contract_id}"
        else:
            subject = "a plan"
        super().__init__(f"Rejecting {subject} requires a reason")


class ActivePlanExistsError(WorkflowError):
    """Contract already has an active plan that is still in review."""

    code: str = "ACTIVE_PLAN_EXISTS"

    def __init__(self, contract_id: str, plan_id: str, status: str):
        self.contract_id = contract_id
        self.plan_id = plan_id
        self.status = status
        super().__init__(
            f"Contract {contract_id} already has plan {plan_id} in status {status}"
        )


class UnknownRoleError(WorkflowError):
    """Role name is neither a policy role nor a configured alias."""

    code: str = "UNKNOWN_ROLE"

    def __init__(self, role_name: str):
        self.role_name = role_name
        super().__init__(f"Unknown actor role: {role_name!r}")


class UnknownActionError(WorkflowError):
    """Action name is not one the workflow understands."""

    code: str = "UNKNOWN_ACTION"

    def __init__(self, action_name: str):
        self.action_name = action_name
        super().__init__(f"Unknown review action: {action_name!r}")


class InvalidContractTransitionError(WorkflowError):
    """Actor role may not take the action on the contract's review status."""

    code: str = "INVALID_CONTRACT_TRANSITION"

    def __init__(self, current_status: str, actor_role: str, action: str):
        self.current_status = current_status
        self.actor_role = actor_role
        self.action = action
        super().__init__(
            f"Role {actor_role} may not {action} a contract in status {current_status}"
        )


class ContractClosedError(WorkflowError):
    """Contract is signed (Active) and accepts no further review actions."""

    code: str = "CONTRACT_CLOSED"

    def __init__(self, status: str, contract_id: str | None = None):
        self.status = status
        self.contract_id = contract_id
        subject = f"Contract {contract_id}" if contract_id else "Contract"
        super().__init__(f"{subject} is closed (status={status})")


# Lookup exceptions


class NotFoundError(ContractCoreError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class PlanNotFoundError(NotFoundError):
    """Business plan with given ID was not found."""

    code: str = "PLAN_NOT_FOUND"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Business plan not found: {plan_id}")


class ContractNotFoundError(NotFoundError):
    """Contract with given ID was not found."""

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__(f"Contract not found: {contract_id}")


# Audit exceptions


class AuditError(ContractCoreError):
    """Base exception for audit trail errors."""

    code: str = "AUDIT_ERROR"


class LogAppendFailedError(AuditError):
    """
    Review log append failed after the plan (or contract) status was persisted.

    Non-fatal: the status change is kept and this error is surfaced to the
    caller as a warning.
    """

    code: str = "LOG_APPEND_FAILED"

    def __init__(
        self,
        plan_id: str | None,
        from_status: str,
        to_status: str,
        cause: str,
        contract_id: str | None = None,
    ):
        self.plan_id = plan_id
        self.contract_id = contract_id
        self.from_status = from_status
        self.to_status = to_status
        self.cause = cause
        subject = f"plan {plan_id}" if plan_id else f"contract {contract_id}"
        super().__init__(
            f"Review log append failed for {subject} "
            f"({from_status} -> {to_status}): {cause}"
        )


class SnapshotTamperedError(AuditError):
    """Frozen financial snapshot no longer matches its recorded hash."""

    code: str = "SNAPSHOT_TAMPERED"

    def __init__(self, plan_id: str, expected_hash: str, computed_hash: str):
        self.plan_id = plan_id
        self.expected_hash = expected_hash
        self.computed_hash = computed_hash
        super().__init__(
            f"Financial snapshot of plan {plan_id} was modified: "
            f"expected {expected_hash}, computed {computed_hash}"
        )


# Concurrency exceptions


class ConcurrencyError(ContractCoreError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(ContractCoreError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
