"""
Per-project mutual exclusion.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class ProjectLocks:
    """Registry of one lock per project id.

    Locks are created on first use and kept for the life of the process;
    there is one entry per project ever resolved.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, project_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = self._locks[project_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        """Hold the lock of ``project_id`` for the duration of the block."""
        lock = self.get(project_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
