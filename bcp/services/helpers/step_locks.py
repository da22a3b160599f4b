"""
Per-(plan, step) critical sections for replace-on-submit writes.

Every wizard step replaces a plan's whole child set with a delete followed
by a batch insert. Two concurrent submissions of the same step for the same
plan must not interleave those statements, or one submission's rows are lost
or doubled. Writes for other plans, or other steps of the same plan, are
never blocked.

Locks are created on first use and dropped as soon as no thread holds or
waits on them, so the registry only ever contains keys that are in flight.

Usage:
    with step_lock(plan_id, "processes"):
        ...delete + insert + commit...

Scope is one process. Across worker processes the single database
transaction per replace is the serialization point.
"""

import logging
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


# Key: (plan_id, step)
_step_locks: dict[tuple[str, str], _Entry] = {}
_registry_lock = threading.Lock()


@contextmanager
def step_lock(plan_id: str, step: str):
    """Hold the exclusive lock for ``(plan_id, step)`` for the duration of the block."""
    key = (plan_id, step)
    with _registry_lock:
        entry = _step_locks.get(key)
        if entry is None:
            entry = _step_locks[key] = _Entry()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_lock:
            entry.users -= 1
            if entry.users == 0:
                _step_locks.pop(key, None)


def active_locks() -> int:
    """Number of (plan, step) keys currently held or awaited."""
    with _registry_lock:
        return len(_step_locks)
