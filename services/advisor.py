"""Composes the reading cache and the classifier into one advisory entry point."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from services.cache import ReadingCache
from services.classifier import Advisory, classify
from services.upstream import FlowApiClient
from settings import get_settings

logger = logging.getLogger(__name__)

FALLBACK_SPEECH = "I'm having trouble getting data."


class RowingAdvisor:
    """Answers "can I row today?" from the cached or freshly fetched reading."""

    def __init__(self, cache: ReadingCache, api: Optional[FlowApiClient] = None) -> None:
        self.cache = cache
        self.api = api

    async def current_advisory(self) -> Advisory:
        """Return the advisory for the current reading.

        Raises ``FetchError`` when no fresh reading can be obtained; the
        previous cache entry is left as it was.
        """
        reading = await self.cache.get_reading()
        advisory = classify(reading)
        logger.info(
            "Classified flow reading",
            extra={
                "station": reading.label,
                "value": reading.value,
                "tier": advisory.tier.value,
            },
        )
        return advisory

    async def aclose(self) -> None:
        """Release the upstream HTTP client, if this advisor owns one."""
        if self.api is not None:
            await self.api.aclose()


@lru_cache
def build_default_advisor() -> RowingAdvisor:
    """Factory that wires the process-wide advisor from settings."""
    settings = get_settings()
    api = FlowApiClient(timeout=settings.fetch_timeout)
    cache = ReadingCache(fetch=api.fetch_latest, ttl=settings.cache_ttl)
    return RowingAdvisor(cache=cache, api=api)
