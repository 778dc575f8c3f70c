"""Time-bounded, single-slot cache in front of the upstream flow API."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from models.records import CacheEntry, Reading

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60.0

FetchFn = Callable[[], Awaitable[Reading]]
Clock = Callable[[], float]


class ReadingCache:
    """Holds at most one reading and refetches once it is older than ``ttl``.

    Concurrent misses each trigger their own fetch unless ``single_flight`` is
    enabled, in which case callers arriving while a fetch is in progress await
    that same fetch instead of starting another one.
    """

    def __init__(
        self,
        fetch: FetchFn,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
        single_flight: bool = False,
    ) -> None:
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive.")
        self._fetch = fetch
        self.ttl = ttl
        self._clock = clock
        self.single_flight = single_flight
        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional[asyncio.Task[Reading]] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def invalidate(self) -> None:
        self._entry = None

    def is_fresh(self) -> bool:
        entry = self._entry
        if entry is None:
            return False
        return self._clock() - entry.fetched_at < self.ttl

    async def get_reading(self) -> Reading:
        entry = self._entry
        if entry is not None:
            age = self._clock() - entry.fetched_at
            if age < self.ttl:
                logger.debug(
                    "Serving cached reading",
                    extra={"cache_age_ms": int(age * 1000)},
                )
                return entry.reading
            logger.info("Cached reading expired", extra={"cache_age_ms": int(age * 1000)})
        else:
            logger.info("Cache empty, fetching reading")

        if not self.single_flight:
            return await self._refresh()

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> Reading:
        # A failed fetch propagates before the entry is touched.
        reading = await self._fetch()
        self._entry = CacheEntry(reading=reading, fetched_at=self._clock())
        return reading

    def _clear_inflight(self, task: asyncio.Task[Reading]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Waiters receive the exception through shield(); mark it retrieved.
            task.exception()
