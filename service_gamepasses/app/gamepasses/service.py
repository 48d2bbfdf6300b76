"""
Gamepass lookup service: validation, caching and pipeline coordination.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from shared.errors import InvalidInputError
from shared.logging import get_logger

from service_gamepasses.app.aggregation.aggregator import GamepassAggregator
from service_gamepasses.app.caching.response_cache import ResponseCache

from .models import Gamepass

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


_USER_ID_PATTERN = re.compile(r"[0-9]+")


def normalize_user_id(raw: Optional[str]) -> str:
    """Return the canonical form of a Roblox user id or raise InvalidInputError."""
    if not raw or not _USER_ID_PATTERN.fullmatch(raw):
        raise InvalidInputError(details={"user_id": raw})
    # Leading zeros name the same user
    return raw.lstrip("0") or "0"


class GamepassLookupService:
    """Serves a user's gamepasses from cache, aggregating on a miss.

    With ``dedupe_inflight`` on, concurrent misses for the same user share one
    pipeline run. A failed run propagates its error to every waiter and
    leaves the cache untouched.
    """

    def __init__(
        self,
        aggregator: GamepassAggregator,
        cache: ResponseCache,
        *,
        dedupe_inflight: bool = True,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.aggregator = aggregator
        self.cache = cache
        self.dedupe_inflight = dedupe_inflight
        self.metrics = metrics
        self.logger = get_logger("gamepasses.lookup")
        self._inflight: Dict[str, "asyncio.Task[List[Gamepass]]"] = {}

    async def get_gamepasses(self, user_id: str) -> Tuple[List[Gamepass], bool]:
        """
        Return ``(gamepasses, cached)`` for a raw user id.

        Raises InvalidInputError before touching the cache or upstream, and
        the upstream error classes when aggregation fails.
        """
        key = normalize_user_id(user_id)

        cached = self.cache.get(key)
        if cached is not None:
            self.logger.info("Cache hit", roblox_user_id=key, gamepasses=len(cached))
            self._count("cache_hits_total")
            return cached, True

        self._count("cache_misses_total")
        if not self.dedupe_inflight:
            return await self._refresh(key), False

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key))
            self._inflight[key] = task
            task.add_done_callback(lambda _done, key=key: self._inflight.pop(key, None))
        else:
            self.logger.info("Joining in-flight aggregation", roblox_user_id=key)

        return await asyncio.shield(task), False

    def inflight_count(self) -> int:
        return len(self._inflight)

    async def _refresh(self, key: str) -> List[Gamepass]:
        self.logger.info("Fetching gamepasses from Roblox", roblox_user_id=key)
        started = time.perf_counter()
        try:
            gamepasses = await self.aggregator.aggregate(key)
        except Exception:
            self._observe(started, "error")
            raise

        self._observe(started, "ok")
        self.cache.put(key, gamepasses)
        if self.metrics:
            self.metrics.increment_counter("gamepasses_aggregated_total", amount=len(gamepasses))
            self.metrics.set_gauge("cache_entries", len(self.cache), cache_type="gamepasses")
        self.logger.info("Aggregated gamepasses", roblox_user_id=key, gamepasses=len(gamepasses))
        return gamepasses

    def _count(self, metric_name: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type="gamepasses")

    def _observe(self, started: float, outcome: str) -> None:
        if self.metrics:
            self.metrics.observe_histogram(
                "aggregation_duration_seconds", time.perf_counter() - started, outcome=outcome
            )
