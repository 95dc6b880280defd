"""
Workflow settings value object (``contract_kernel.domain.settings``).

Responsibility
--------------
Typed, frozen parameters for the financial and approval engines.  The
kernel never reads configuration files; ``contract_config`` parses YAML
into this object and callers inject it.

Architecture position
---------------------
**Kernel domain layer** -- pure value object.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

DEFAULT_EXPERT_COST_KEYWORDS: tuple[str, ...] = (
    "chuyên gia",
    "thuê ngoài",
    "thuê khoán chuyên môn",
    "expert",
)

DEFAULT_ROLE_ALIASES: Mapping[str, str] = MappingProxyType({
    "NVKD": "Sales",
    "AdminUnit": "UnitLead",
    "UnitLeader": "UnitLead",
    "ChiefAccountant": "Accountant",
    "Leadership": "Board",
})


@dataclass(frozen=True)
class WorkflowSettings:
    """Parameters of the financial engine and approval policy.

    ``auto_skip_margin_threshold`` is a percentage: a plan whose frozen
    margin is at or above it, with no expert hiring cost, skips Board
    review.  ``admin_override_enabled=False`` makes the Admin role subject
    to the normal authorization table.
    """

    vat_rate: Decimal = Decimal("0.10")
    auto_skip_margin_threshold: Decimal = Decimal("30")
    expert_cost_keywords: tuple[str, ...] = DEFAULT_EXPERT_COST_KEYWORDS
    role_aliases: Mapping[str, str] = field(default_factory=lambda: DEFAULT_ROLE_ALIASES)
    system_comment_prefix: str = "[AUTO]"
    admin_override_enabled: bool = True


DEFAULT_SETTINGS = WorkflowSettings()
