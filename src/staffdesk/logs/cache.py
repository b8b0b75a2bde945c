"""In-process cache of filtered log query results.

Entries are keyed by ``FilterCriteria.cache_key()`` plus any extra
arguments the caller passes (paging, row caps).  Writes to ``ai_logs``
call :meth:`LogQueryCache.invalidate` so readers never see a deleted
record; the TTL bounds staleness for rows written by other processes.
"""

from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any, TypeVar

import structlog

from staffdesk.config.settings import get_settings
from staffdesk.logs.criteria import FilterCriteria

logger = structlog.get_logger()

T = TypeVar("T")


class LogQueryCache:
    def __init__(
        self,
        ttl_seconds: float = 30.0,
        max_entries: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    @staticmethod
    def make_key(criteria: FilterCriteria, **params: object) -> str:
        criteria_key = criteria.cache_key()
        if not params:
            return criteria_key
        return f"{criteria_key}|{json.dumps(params, sort_keys=True, default=str)}"

    def get(self, criteria: FilterCriteria, **params: object) -> Any | None:
        key = self.make_key(criteria, **params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, criteria: FilterCriteria, value: Any, **params: object) -> None:
        """Store ``value``, dropping expired entries and then the oldest ones past ``max_entries``."""
        key = self.make_key(criteria, **params)
        now = self._clock()
        # dict order is store order, oldest first
        self._entries.pop(key, None)
        self.purge_expired(now)
        while self._entries and len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now, value)

    def purge_expired(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def get_or_load(
        self,
        criteria: FilterCriteria,
        loader: Callable[[], Awaitable[T]],
        **params: object,
    ) -> T:
        """Return the cached value or await ``loader``.  Loader errors propagate and nothing is stored."""
        cached = self.get(criteria, **params)
        if cached is not None:
            logger.debug("log_query_cache_hit", key=self.make_key(criteria, **params))
            return cached
        value = await loader()
        self.set(criteria, value, **params)
        return value

    def invalidate(self, criteria: FilterCriteria | None = None) -> int:
        """Drop entries for ``criteria`` (any params), or everything. Returns the number dropped."""
        if criteria is None:
            dropped = len(self._entries)
            self._entries.clear()
        else:
            prefix = criteria.cache_key()
            stale = [k for k in self._entries if k == prefix or k.startswith(prefix + "|")]
            for key in stale:
                del self._entries[key]
            dropped = len(stale)
        if dropped:
            logger.debug("log_query_cache_invalidated", entries=dropped)
        return dropped

    def __len__(self) -> int:
        return len(self._entries)


@lru_cache
def get_log_cache() -> LogQueryCache:
    """Process-wide cache shared by the API and services."""
    settings = get_settings()
    return LogQueryCache(
        ttl_seconds=settings.logs_cache_ttl_seconds,
        max_entries=settings.logs_cache_max_entries,
    )
