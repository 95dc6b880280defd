"""
contract_kernel.services.plan_locks -- Per-record write serialization.

Responsibility:
    In-process mutex keyed by plan id (or, for contract review, contract
    id).  The workflow services hold it around load -> decide -> persist
    so that no two transitions on the same record are in flight at once.
    Different records never contend.

Invariants enforced:
    - At most one holder per plan id at a time.
    - Entries are dropped when their last holder leaves, so the registry
      does not grow with the number of plans ever touched.

Non-goals:
    - Cross-process exclusion.  Across processes the row lock
      (SELECT ... FOR UPDATE) and the optimistic ``row_version`` check in
      the plan store serialize writers.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Hashable, Iterator


@dataclass
class _PlanLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class PlanLockRegistry:
    """Registry of per-plan mutexes."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, _PlanLock] = {}

    @contextmanager
    def hold(self, plan_id: Hashable) -> Iterator[None]:
        """Block until the plan's mutex is free, then hold it for the block."""
        with self._guard:
            entry = self._locks.setdefault(plan_id, _PlanLock())
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[plan_id]

    def active_count(self) -> int:
        """Number of plan ids currently held or waited on."""
        with self._guard:
            return len(self._locks)


# Shared by every workflow service in the process unless one is injected.
DEFAULT_PLAN_LOCKS = PlanLockRegistry()

# Contract review transitions, keyed by contract id.
DEFAULT_CONTRACT_LOCKS = PlanLockRegistry()
