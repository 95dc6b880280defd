"""
contract_config -- single public entrypoint for workflow settings.

Responsibility:
    Provides the runtime way to obtain ``WorkflowSettings`` through
    ``get_active_settings()``.  Services receive the returned object by
    injection; no other component reads settings files or environment
    variables.

Architecture position:
    Configuration -- sits above ``contract_kernel``.  The kernel MUST NEVER
    import from ``contract_config``.

Failure modes:
    - ``FileNotFoundError`` -- the path named by ``CONTRACT_CORE_SETTINGS``
      does not exist.
    - ``ValueError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``settings_loaded`` log entry with the source path and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from contract_config.loader import compute_checksum, load_settings, parse_settings
from contract_kernel.domain.settings import WorkflowSettings
from contract_kernel.logging_config import get_logger

logger = get_logger("config")

SETTINGS_ENV_VAR = "CONTRACT_CORE_SETTINGS"

_DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings" / "default.yaml"


def get_active_settings(path: Path | None = None) -> WorkflowSettings:
    """Load the active workflow settings.

    Resolution order: explicit ``path``, then the file named by the
    ``CONTRACT_CORE_SETTINGS`` environment variable, then the packaged
    ``settings/default.yaml``.
    """
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    source = path or (Path(env_path) if env_path else _DEFAULT_SETTINGS_PATH)

    settings = load_settings(source)

    logger.info(
        "settings_loaded",
        extra={
            "source": str(source),
            "checksum": compute_checksum(settings),
            "auto_skip_margin_threshold": settings.auto_skip_margin_threshold,
        },
    )
    return settings


__all__ = [
    "SETTINGS_ENV_VAR",
    "WorkflowSettings",
    "compute_checksum",
    "get_active_settings",
    "load_settings",
    "parse_settings",
]
