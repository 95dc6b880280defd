"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from contract_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from contract_kernel.domain.contract_review import (
    ContractPermissions,
    ContractReviewAction,
    ContractReviewEntry,
    ContractReviewRole,
    ContractState,
    ContractStatus,
    ContractTransitionResult,
)
from contract_kernel.domain.financials import (
    ExecutionCost,
    FinancialTotals,
    LineItem,
    LineMargin,
)
from contract_kernel.domain.plan import (
    PENDING_STATUSES,
    STAGE_SEQUENCE,
    TERMINAL_PLAN_STATUSES,
    ActorRole,
    ApprovalDecision,
    BusinessPlan,
    PlanStatus,
    ReviewAction,
    ReviewLogEntry,
    ReviewRole,
    TransitionResult,
)
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.domain.stores import (
    ContractReviewLogStore,
    ContractStateStore,
    ContractStore,
    PlanStore,
    ReviewLogStore,
)

__all__ = [
    "ActorRole",
    "ApprovalDecision",
    "BusinessPlan",
    "Clock",
    "ContractPermissions",
    "ContractReviewAction",
    "ContractReviewEntry",
    "ContractReviewLogStore",
    "ContractReviewRole",
    "ContractState",
    "ContractStateStore",
    "ContractStatus",
    "ContractStore",
    "ContractTransitionResult",
    "DEFAULT_SETTINGS",
    "DeterministicClock",
    "ExecutionCost",
    "FinancialTotals",
    "LineItem",
    "LineMargin",
    "PENDING_STATUSES",
    "PlanStatus",
    "PlanStore",
    "ReviewAction",
    "ReviewLogEntry",
    "ReviewLogStore",
    "ReviewRole",
    "STAGE_SEQUENCE",
    "SystemClock",
    "TERMINAL_PLAN_STATUSES",
    "TransitionResult",
    "WorkflowSettings",
]
