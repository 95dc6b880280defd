"""
contract_services -- Package init and public API.

Responsibility:
    Stateful orchestration that composes the pure engines
    (contract_engines/) with the kernel's stores.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

        contract_services/ -> contract_engines/  (allowed)
        contract_services/ -> contract_kernel/   (allowed)
        contract_engines/  -> contract_services/ (FORBIDDEN)
        contract_kernel/   -> contract_services/ (FORBIDDEN)
"""

from contract_services.orchestrator import WorkflowOrchestrator
from contract_services.workflow_service import PlanWorkflowService

__all__ = [
    "PlanWorkflowService",
    "WorkflowOrchestrator",
]
