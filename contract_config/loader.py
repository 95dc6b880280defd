"""
Settings loader (``contract_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the kernel's frozen
``WorkflowSettings``.  Runtime callers go through
``contract_config.get_active_settings()``; this module is the parsing
layer underneath it.

Architecture position
---------------------
**Config layer**.  Imports kernel domain types; the kernel never imports
this package.

Invariants enforced
-------------------
* Every parsed object is a frozen ``WorkflowSettings``.
* Monetary and percentage values are parsed to ``Decimal`` from their
  string form; floats in YAML are converted through ``str``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  settings identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid numeric or alias values  -> ``ValueError`` with the key name.
"""

from __future__ import annotations

from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from contract_kernel.domain.plan import ActorRole
from contract_kernel.domain.settings import DEFAULT_SETTINGS, WorkflowSettings
from contract_kernel.utils.hashing import hash_payload

_KNOWN_KEYS = frozenset(f.name for f in fields(WorkflowSettings))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(key: str, value: Any) -> Decimal:
    """Parse a non-negative Decimal setting."""
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Setting {key!r} is not a number: {value!r}") from exc
    if not result.is_finite() or result < 0:
        raise ValueError(f"Setting {key!r} must be a non-negative number: {value!r}")
    return result


def parse_role_aliases(data: dict[str, Any]) -> MappingProxyType:
    """Parse and validate the alias -> policy role mapping."""
    valid = {r.value for r in ActorRole}
    aliases: dict[str, str] = {}
    for alias, target in data.items():
        if str(target) not in valid:
            raise ValueError(
                f"Role alias {alias!r} targets unknown role {target!r}; "
                f"expected one of {sorted(valid)}"
            )
        aliases[str(alias)] = str(target)
    return MappingProxyType(aliases)


def parse_settings(data: dict[str, Any]) -> WorkflowSettings:
    """
    Parse ``WorkflowSettings`` from a dict.

    Keys that are absent keep their defaults.  Unknown keys are rejected
    so that typos do not silently fall back to defaults.
    """
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown settings keys: {sorted(unknown)}")

    defaults = DEFAULT_SETTINGS
    keywords = data.get("expert_cost_keywords", defaults.expert_cost_keywords)
    aliases = data.get("role_aliases")

    return WorkflowSettings(
        vat_rate=parse_decimal("vat_rate", data.get("vat_rate", defaults.vat_rate)),
        auto_skip_margin_threshold=parse_decimal(
            "auto_skip_margin_threshold",
            data.get("auto_skip_margin_threshold", defaults.auto_skip_margin_threshold),
        ),
        expert_cost_keywords=tuple(str(k) for k in keywords or ()),
        role_aliases=parse_role_aliases(aliases) if aliases is not None else defaults.role_aliases,
        system_comment_prefix=str(
            data.get("system_comment_prefix", defaults.system_comment_prefix)
        ),
        admin_override_enabled=bool(
            data.get("admin_override_enabled", defaults.admin_override_enabled)
        ),
    )


def load_settings(path: Path) -> WorkflowSettings:
    """Load and parse a YAML settings file."""
    return parse_settings(load_yaml_file(path))


def compute_checksum(settings: WorkflowSettings) -> str:
    """
    Compute SHA-256 checksum of the settings' canonical JSON form.

    Identical settings always produce identical checksums.
    """
    return hash_payload({
        "vat_rate": settings.vat_rate,
        "auto_skip_margin_threshold": settings.auto_skip_margin_threshold,
        "expert_cost_keywords": list(settings.expert_cost_keywords),
        "role_aliases": dict(settings.role_aliases),
        "system_comment_prefix": settings.system_comment_prefix,
        "admin_override_enabled": settings.admin_override_enabled,
    })
