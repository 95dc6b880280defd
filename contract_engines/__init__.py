"""
Module: contract_engines
Responsibility:
    Package entrypoint that re-exports the pure financial calculation and
    approval decision engines, and the contract review policy.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import contract_kernel/domain/ (and kernel exceptions).
    MUST NOT import contract_kernel services, models or db.

Invariants enforced:
    - Purity: engines never read the clock or touch storage.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from contract_engines import compute_totals, next_status
"""

from contract_engines.approval import (
    AUTHORIZATION_TABLE,
    authorize,
    next_status,
    permitted_actions,
    qualifies_for_auto_skip,
    reject_status,
    resolve_action,
    resolve_role,
    review_role_for,
)
from contract_engines.contract_review import (
    CONTRACT_REVIEW_TABLE,
    contract_permissions,
    contract_permitted_actions,
    next_contract_status,
    resolve_contract_action,
)
from contract_engines.financials import (
    compute_line_margin,
    compute_totals,
    cost_with_amount,
    cost_with_percentage,
    is_expert_hiring,
    to_amount,
)

__all__ = [
    "AUTHORIZATION_TABLE",
    "CONTRACT_REVIEW_TABLE",
    "authorize",
    "contract_permissions",
    "contract_permitted_actions",
    "compute_line_margin",
    "compute_totals",
    "cost_with_amount",
    "cost_with_percentage",
    "is_expert_hiring",
    "next_contract_status",
    "next_status",
    "permitted_actions",
    "qualifies_for_auto_skip",
    "reject_status",
    "resolve_action",
    "resolve_contract_action",
    "resolve_role",
    "review_role_for",
    "to_amount",
]
