"""In-flight bookkeeping for concurrent ingestion.

``InFlightRegistry`` records which document GUIDs are currently being
indexed and how many ingestions are actively running.  It is the only
state shared by concurrent ingestions, so every operation takes one
``threading.Lock`` and releases it before returning; the lock is never
held across tokenization or I/O.

``KeyedLock`` serializes work that shares an identity (GUID or handle)
without blocking unrelated documents.

Example::

    registry = InFlightRegistry()
    registry.register(doc.guid)
    try:
        with registry.running():
            ...
    finally:
        registry.deregister(doc.guid)
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Iterator
from contextlib import contextmanager


class InFlightRegistry:
    """Lock-guarded multiset of GUIDs being indexed plus an active counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._guids: Counter[str] = Counter()
        self._active = 0

    def register(self, guid: str) -> None:
        with self._lock:
            self._guids[guid] += 1

    def deregister(self, guid: str) -> None:
        with self._lock:
            if self._guids.get(guid, 0) <= 1:
                self._guids.pop(guid, None)
            else:
                self._guids[guid] -= 1

    def snapshot(self) -> list[str]:
        """Copy of the GUIDs currently registered."""
        with self._lock:
            return list(self._guids.elements())

    def __contains__(self, guid: str) -> bool:
        with self._lock:
            return guid in self._guids

    def __len__(self) -> int:
        with self._lock:
            return sum(self._guids.values())

    @property
    def active(self) -> int:
        """Number of ingestions executing right now."""
        with self._lock:
            return self._active

    @contextmanager
    def running(self) -> Iterator[None]:
        with self._lock:
            self._active += 1
        try:
            yield
        finally:
            with self._lock:
                self._active -= 1

    def clear(self) -> None:
        with self._lock:
            self._guids.clear()


class KeyedLock:
    """One lock per key, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: Counter[str] = Counter()

    @contextmanager
    def hold(self, keys: Iterable[str]) -> Iterator[None]:
        """Acquire the locks for ``keys`` in sorted order (deadlock-free)."""
        ordered = sorted({k for k in keys if k})
        registered: list[str] = []
        acquired: list[str] = []
        try:
            for key in ordered:
                with self._guard:
                    lock = self._locks.setdefault(key, threading.Lock())
                    self._waiters[key] += 1
                registered.append(key)
                lock.acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            with self._guard:
                for key in registered:
                    self._waiters[key] -= 1
                    if self._waiters[key] <= 0:
                        del self._waiters[key]
                        self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = [
    "InFlightRegistry",
    "KeyedLock",
]
