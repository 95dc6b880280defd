"""Write-side kernel services: plan and contract review persistence, review logs, locks."""

from contract_kernel.services.base import BaseService
from contract_kernel.services.contract_review_store import (
    ContractReviewLogService,
    ContractStateService,
)
from contract_kernel.services.plan_locks import (
    DEFAULT_CONTRACT_LOCKS,
    DEFAULT_PLAN_LOCKS,
    PlanLockRegistry,
)
from contract_kernel.services.plan_store import PlanStoreService, hash_snapshot
from contract_kernel.services.review_log_service import ReviewLogService

__all__ = [
    "BaseService",
    "ContractReviewLogService",
    "ContractStateService",
    "DEFAULT_CONTRACT_LOCKS",
    "DEFAULT_PLAN_LOCKS",
    "PlanLockRegistry",
    "PlanStoreService",
    "ReviewLogService",
    "hash_snapshot",
]
