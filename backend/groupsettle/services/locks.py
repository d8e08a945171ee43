"""Per-group mutex so recompute/settle calls on one group never interleave."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

_registry_lock = threading.Lock()
_group_locks: dict[int, threading.RLock] = {}


def _lock_for(group_id: int) -> threading.RLock:
    with _registry_lock:
        lock = _group_locks.get(group_id)
        if lock is None:
            lock = _group_locks[group_id] = threading.RLock()
        return lock


@contextmanager
def group_lock(group_id: int) -> Iterator[None]:
    lock = _lock_for(group_id)
    with lock:
        yield


def forget_group(group_id: int) -> None:
    with _registry_lock:
        _group_locks.pop(group_id, None)
