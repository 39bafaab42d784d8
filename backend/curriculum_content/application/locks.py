"""Per-key mutation locks: at most one in-flight mutation per identifier."""
from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from curriculum_content.domain.common.errors import ConflictError


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLock:
    """
    A lock per key, created on first use and dropped once nobody holds or waits
    on it. A caller that cannot acquire within ``timeout`` seconds gets a
    ConflictError instead of queueing forever.
    """

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _Entry())
            entry.holders += 1

        acquired = entry.lock.acquire(timeout=self._timeout)
        try:
            if not acquired:
                raise ConflictError(f"'{key}' is busy with another mutation; retry later.")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)
