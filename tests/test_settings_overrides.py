from __future__ import annotations

from typing import Iterator

import pytest

from services.advisor import build_default_advisor
from settings import DEFAULT_CACHE_TTL, DEFAULT_FETCH_TIMEOUT, get_settings


@pytest.fixture(autouse=True)
def _clear_caches() -> Iterator[None]:
    get_settings.cache_clear()
    build_default_advisor.cache_clear()
    yield
    build_default_advisor.cache_clear()
    get_settings.cache_clear()


def test_defaults(monkeypatch) -> None:
    for name in ("LOG_LEVEL", "FLOW_FETCH_TIMEOUT", "FLOW_CACHE_TTL"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.log_level == "INFO"
    assert settings.fetch_timeout == DEFAULT_FETCH_TIMEOUT == 10.0
    assert settings.cache_ttl == DEFAULT_CACHE_TTL == 900.0


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("FLOW_FETCH_TIMEOUT", "5")
    monkeypatch.setenv("FLOW_CACHE_TTL", "60")

    advisor = build_default_advisor()

    assert get_settings().log_level == "DEBUG"
    assert advisor.api is not None
    assert advisor.api.timeout == 5.0
    assert advisor.cache.ttl == 60.0


@pytest.mark.parametrize("raw", ["", "abc", "0", "-3"])
def test_invalid_numbers_fall_back_to_defaults(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("FLOW_FETCH_TIMEOUT", raw)
    monkeypatch.setenv("FLOW_CACHE_TTL", raw)

    settings = get_settings()

    assert settings.fetch_timeout == DEFAULT_FETCH_TIMEOUT
    assert settings.cache_ttl == DEFAULT_CACHE_TTL
