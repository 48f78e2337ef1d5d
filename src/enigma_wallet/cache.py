"""TTL caches for balance snapshots, quotes and token reference data."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cachetools import TLRUCache

from .constants import CACHE_MAX_ENTRIES
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class ResponseCache:
    """Bounded key/value store with a TTL per entry.

    Entries live in a ``cachetools.TLRUCache`` until ``expires_at`` plus the
    stale grace window. Past ``expires_at`` they are misses for ``get`` but stay
    reachable through ``get(key, allow_stale=True)`` for the rate-limit
    fallback. ``expire`` sweeps the whole store and is run periodically by the
    API server. When ``maxsize`` is reached the least recently used entry goes.

    Args:
        clock: Returns the current time in seconds.
        stale_grace_seconds: How long an expired entry survives for stale reads.
        maxsize: Maximum number of entries held.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        stale_grace_seconds: float = 0.0,
        maxsize: int = CACHE_MAX_ENTRIES,
    ) -> None:
        self._clock = clock
        self.stale_grace_seconds = stale_grace_seconds
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=maxsize, ttu=self._time_to_use, timer=clock
        )

    def _time_to_use(self, _key: str, entry: CacheEntry, _now: float) -> float:
        return entry.expires_at + self.stale_grace_seconds

    def get(self, key: str, *, allow_stale: bool = False) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() < entry.expires_at or allow_stale:
            return entry.value
        return None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        self._persist()

    def expire(self) -> int:
        """Remove entries past their stale grace window.

        Returns:
            Number of entries removed
        """
        removed = len(self._entries.expire())
        if removed:
            self._persist()
        return removed

    def clear(self) -> None:
        self._entries.clear()
        self._persist()

    def __len__(self) -> int:
        return len(self._entries)

    def _persist(self) -> None:
        """Hook for durable subclasses."""


class FileResponseCache(ResponseCache):
    """ResponseCache persisted to a JSON file between processes.

    Values must be JSON-compatible. Storage and serialization faults are
    logged and behave as cache misses; they are never raised to callers.
    """

    def __init__(
        self,
        path: str | Path,
        clock: Callable[[], float] = time.time,
        stale_grace_seconds: float = 0.0,
        maxsize: int = CACHE_MAX_ENTRIES,
    ) -> None:
        super().__init__(clock=clock, stale_grace_seconds=stale_grace_seconds, maxsize=maxsize)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            for key, item in raw.items():
                self._entries[key] = CacheEntry(
                    value=item["value"], expires_at=float(item["expires_at"])
                )
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, e)
            self._entries.clear()

    def _persist(self) -> None:
        with self._entries.timer as now:
            self._entries.expire(now)
            payload = {
                key: {"value": entry.value, "expires_at": entry.expires_at}
                for key, entry in self._entries.items()
            }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(payload, f)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to write cache file %s: %s", self.path, e)
