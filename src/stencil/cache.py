"""Memoisation of rendered templates."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Mapping

__all__ = ["CacheStats", "RenderCache", "make_cache_key"]


LOGGER = logging.getLogger(__name__)


def make_cache_key(template: str, configuration: Mapping[str, Any]) -> str:
    """Return a stable digest for a (template, configuration) pair."""

    serialized = json.dumps(configuration, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256()
    digest.update(template.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(serialized.encode("utf-8"))
    return digest.hexdigest()


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int
    max_size: int | None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class RenderCache:
    """Thread-safe mapping of cache keys to rendered text.

    Parameters
    ----------
    max_size:
        Upper bound on stored entries. ``None`` keeps every entry; otherwise the
        least recently used entry is evicted once the bound is exceeded.
    ttl:
        Lifetime of an entry in seconds. Expired entries count as misses.
    clock:
        Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        max_size: int | None = None,
        *,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be a positive integer or None")
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive or None")

        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> str | None:
        """Return the stored value for ``key`` or ``None`` on a miss."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry[0]

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            if self.max_size is None:
                return
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                LOGGER.debug("evicted render cache entry %s", evicted[:12])

    def invalidate(self, key: str) -> bool:
        """Drop ``key``; return whether an entry was removed."""

        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._entries),
                max_size=self.max_size,
            )

    def reset_stats(self) -> None:
        with self._lock:
            self._hits = self._misses = self._evictions = 0

    def _expired(self, entry: tuple[str, float]) -> bool:
        return self.ttl is not None and self._clock() - entry[1] > self.ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key) if isinstance(key, str) else None
            return entry is not None and not self._expired(entry)
