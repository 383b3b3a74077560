"""In-process serialization of sync rounds that touch the same data."""

from __future__ import annotations

import threading
from collections.abc import Hashable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mintsync.domain.errors import SyncTimeoutError

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(slots=True)
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """One mutex per key; entries are dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, key: Hashable, *, timeout: float | None = None) -> Iterator[None]:
        entry = self._checkout(key)
        try:
            acquired = entry.lock.acquire(timeout=-1 if timeout is None else max(timeout, 0.0))
            if not acquired:
                raise SyncTimeoutError(f"Timed out waiting for concurrent sync on {key!r}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def active_keys(self) -> set[Hashable]:
        with self._guard:
            return set(self._entries)

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.holders += 1
            return entry

    def _checkin(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)
