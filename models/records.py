"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class Reading:
    """A single river-flow measurement reported by the gauging station."""

    label: str
    timestamp: datetime
    value: float


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached reading paired with the clock value at which it was fetched."""

    reading: Reading
    fetched_at: float


class AdvisoryTier(str, Enum):
    """Rowing restriction levels derived from the current flow rate."""

    normal = "normal"
    high_flow = "high_flow"
    very_high_flow = "very_high_flow"
    no_rowing = "no_rowing"
