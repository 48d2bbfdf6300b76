"""
In-process TTL cache for aggregated gamepass responses.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shared.logging import get_logger

from service_gamepasses.app.gamepasses.models import Gamepass


DEFAULT_RESPONSE_TTL = 300


@dataclass(frozen=True)
class CacheEntry:
    """Aggregated gamepasses and the monotonic time they were stored."""

    created_at: float
    items: List[Gamepass]


class ResponseCache:
    """Maps a Roblox user id to its last aggregated gamepass list.

    Freshness is only checked on read: an entry is served while
    ``now - created_at < ttl``. Stale entries stay in memory until the same
    key is written again.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_RESPONSE_TTL, *, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.logger = get_logger("gamepasses.response_cache")

    def get(self, key: str) -> Optional[List[Gamepass]]:
        """Return the cached items for ``key`` or None when absent or stale."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now - entry.created_at >= self.ttl_seconds:
                self.misses += 1
                stale = entry is not None
            else:
                self.hits += 1
                return list(entry.items)

        self.logger.debug("Cache miss", key=key, stale=stale)
        return None

    def put(self, key: str, items: List[Gamepass]) -> None:
        """Store ``items`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(created_at=self._clock(), items=list(items))
        with self._lock:
            self._entries[key] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, float]:
        """Counters for health reporting."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "ttl_seconds": self.ttl_seconds,
            }
