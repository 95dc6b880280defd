"""ORM models for the contract kernel."""

from contract_kernel.models.contract import (
    ContractModel,
    ExecutionCostModel,
    LineItemModel,
)
from contract_kernel.models.contract_review import ContractReviewModel
from contract_kernel.models.plan import (
    BusinessPlanModel,
    totals_from_payload,
    totals_to_payload,
)
from contract_kernel.models.review_log import ReviewLogModel

__all__ = [
    "BusinessPlanModel",
    "ContractModel",
    "ContractReviewModel",
    "ExecutionCostModel",
    "LineItemModel",
    "ReviewLogModel",
    "totals_from_payload",
    "totals_to_payload",
]
