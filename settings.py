from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_LOG_LEVEL_ENV = "LOG_LEVEL"
_FETCH_TIMEOUT_ENV = "FLOW_FETCH_TIMEOUT"
_CACHE_TTL_ENV = "FLOW_CACHE_TTL"

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = 15 * 60.0


@dataclass(frozen=True)
class Settings:
    log_level: str
    fetch_timeout: float
    cache_ttl: float


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        fetch_timeout=_read_positive_float(_FETCH_TIMEOUT_ENV, DEFAULT_FETCH_TIMEOUT),
        cache_ttl=_read_positive_float(_CACHE_TTL_ENV, DEFAULT_CACHE_TTL),
    )
