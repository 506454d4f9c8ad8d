from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    stale: bool = False


class AnalyticsCache(Generic[T]):
    """Consumer-owned cache of computed snapshots, keyed by student id.

    ``invalidate`` only marks an entry stale; the next ``get`` recomputes it.
    When recomputation fails the last good value is served and the entry stays
    stale so the following ``get`` retries. Without a previous value the
    failure propagates to the caller.

    The loader runs outside the cache-wide lock, under a per-key lock, so one
    slow refresh never blocks other students. An invalidation that lands while
    a load is running leaves the loaded value stale. With ``max_entries`` set,
    the least recently used entries are evicted.
    """

    def __init__(self, loader: Callable[[Hashable], T], *, max_entries: Optional[int] = None):
        self._loader = loader
        self._max_entries = max_entries
        self._entries: dict[Hashable, _Entry[T]] = {}
        self._loading: dict[Hashable, threading.Lock] = {}
        self._versions: dict[Hashable, int] = {}
        self._counter = itertools.count(1)
        self._epoch = 0
        self._lock = threading.RLock()

    def _fresh(self, key: Hashable) -> Optional[_Entry[T]]:
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            self._entries[key] = self._entries.pop(key)
            return entry
        return None

    def _token(self, key: Hashable) -> tuple[int, int]:
        return self._epoch, self._versions.get(key, 0)

    def _store(self, key: Hashable, entry: _Entry[T]) -> None:
        self._entries.pop(key, None)
        self._entries[key] = entry
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest)
            self._loading.pop(oldest, None)
            self._versions.pop(oldest, None)
            logger.debug("Analytics cache evicted %s", oldest)

    def get(self, key: Hashable) -> T:
        with self._lock:
            entry = self._fresh(key)
            if entry is not None:
                logger.debug("Analytics cache hit for %s", key)
                return entry.value
            key_lock = self._loading.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                # Another thread may have finished the same refresh meanwhile.
                fresh = self._fresh(key)
                if fresh is not None:
                    return fresh.value
                previous = self._entries.get(key)
                token = self._token(key)

            try:
                value = self._loader(key)
            except Exception:
                if previous is None:
                    raise
                logger.exception("Refreshing analytics for %s failed; serving last snapshot", key)
                return previous.value

            with self._lock:
                stale = self._token(key) != token
                self._store(key, _Entry(value=value, stale=stale))
            logger.debug("Analytics recomputed for %s%s", key, " (already stale)" if stale else "")
            return value

    def peek(self, key: Hashable) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry else None

    def is_stale(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is None or entry.stale

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._versions[key] = next(self._counter)
            entry = self._entries.get(key)
            if entry is not None:
                entry.stale = True

    def invalidate_all(self) -> None:
        with self._lock:
            self._epoch += 1
            for entry in self._entries.values():
                entry.stale = True

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()
            self._versions.clear()
