from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, List

import httpx
import pytest

from models.records import AdvisoryTier
from services.advisor import RowingAdvisor
from services.cache import ReadingCache
from services.upstream import (
    API_URL,
    DEFAULT_LABEL,
    FetchError,
    FlowApiClient,
    NetworkError,
    ParseError,
    extract_latest_reading,
    parse_reading,
)


def _measure_payload(value: Any = "42.5", label: Any = "Reading") -> dict:
    items: dict = {
        "latestReading": {"dateTime": "2024-01-01T10:00:00Z", "value": value},
    }
    if label is not None:
        items["label"] = label
    return {"items": items}


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[FlowApiClient, List[httpx.Request]]:
    seen: List[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    transport = httpx.MockTransport(recording)
    api = FlowApiClient(timeout=5.0, client=httpx.AsyncClient(transport=transport))
    return api, seen


def _fetch(api: FlowApiClient):
    async def run():
        try:
            return await api.fetch_latest()
        finally:
            await api.aclose()

    return asyncio.run(run())


def test_parse_reading_from_object_shape() -> None:
    reading = parse_reading(_measure_payload())

    assert reading.label == "Reading"
    assert reading.value == 42.5
    assert reading.timestamp == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_array_shape_is_normalised_by_accessor() -> None:
    payload = {"items": [_measure_payload()["items"], {"label": "ignored"}]}

    label, latest = extract_latest_reading(payload)

    assert label == "Reading"
    assert latest["value"] == "42.5"


def test_missing_label_defaults() -> None:
    reading = parse_reading(_measure_payload(label=None))

    assert reading.label == DEFAULT_LABEL


def test_numeric_value_and_offset_timestamp() -> None:
    payload = {
        "items": {
            "latestReading": {"dateTime": "2024-07-01T11:00:00+01:00", "value": 88},
        }
    }

    reading = parse_reading(payload)

    assert reading.value == 88.0
    assert reading.timestamp == datetime(2024, 7, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"items": None},
        {"items": []},
        {"items": {"label": "Reading"}},
        {"items": {"latestReading": "soon"}},
        {"items": {"latestReading": {"value": "1.0"}}},
        {"items": {"latestReading": {"dateTime": "2024-01-01T10:00:00Z"}}},
        ["not", "a", "mapping"],
    ],
)
def test_structural_problems_raise_parse_error(payload: Any) -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_reading(payload)

    assert excinfo.value.cause == "invalid response structure"


@pytest.mark.parametrize("value", ["high", "-1", "nan", None, True])
def test_bad_values_raise_parse_error(value: Any) -> None:
    with pytest.raises(ParseError, match="invalid flow value"):
        parse_reading(_measure_payload(value=value))


def test_bad_timestamp_raises_parse_error() -> None:
    payload = _measure_payload()
    payload["items"]["latestReading"]["dateTime"] = "yesterday"

    with pytest.raises(ParseError, match="invalid reading timestamp"):
        parse_reading(payload)


def test_fetch_latest_requests_measure_url() -> None:
    api, seen = _client(lambda request: httpx.Response(200, json=_measure_payload()))

    reading = _fetch(api)

    assert reading.value == 42.5
    assert len(seen) == 1
    assert str(seen[0].url) == API_URL
    assert seen[0].method == "GET"


def test_timeout_surfaces_as_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    api, _ = _client(handler)

    with pytest.raises(NetworkError) as excinfo:
        _fetch(api)

    assert excinfo.value.cause == "timeout"


def test_connection_failure_surfaces_as_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    api, _ = _client(handler)

    with pytest.raises(NetworkError, match="request failed"):
        _fetch(api)


def test_error_status_surfaces_as_network_error() -> None:
    api, _ = _client(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(NetworkError, match="status 503"):
        _fetch(api)


def test_non_json_body_is_parse_error() -> None:
    api, _ = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(ParseError) as excinfo:
        _fetch(api)

    assert excinfo.value.cause == "invalid JSON"
    assert isinstance(excinfo.value, FetchError)


def _advise(payload: dict):
    api, seen = _client(lambda request: httpx.Response(200, json=payload))
    advisor = RowingAdvisor(cache=ReadingCache(fetch=api.fetch_latest), api=api)

    async def run():
        try:
            return await advisor.current_advisory()
        finally:
            await advisor.aclose()

    return asyncio.run(run()), seen


def test_end_to_end_normal_flow() -> None:
    advisory, seen = _advise(_measure_payload(value="42.5"))

    assert len(seen) == 1
    assert advisory.tier is AdvisoryTier.normal
    assert "42.5" in advisory.message
    assert "Reading" in advisory.message


def test_end_to_end_very_high_flow() -> None:
    advisory, _ = _advise(_measure_payload(value="88"))

    assert advisory.tier is AdvisoryTier.very_high_flow
    assert "singles, doubles, or pairs" in advisory.message


def test_malformed_payload_after_good_fetch_keeps_cached_reading() -> None:
    responses = [
        httpx.Response(200, json=_measure_payload(value="42.5")),
        httpx.Response(200, json={"items": {"label": "Reading"}}),
    ]
    api, seen = _client(lambda request: responses.pop(0))
    clock_now = [0.0]
    cache = ReadingCache(fetch=api.fetch_latest, clock=lambda: clock_now[0])

    async def run():
        try:
            first = await cache.get_reading()
            entry = cache.entry
            clock_now[0] += 900.0
            with pytest.raises(ParseError) as excinfo:
                await cache.get_reading()
            return first, entry, excinfo.value
        finally:
            await api.aclose()

    first, entry, error = asyncio.run(run())

    assert len(seen) == 2
    assert error.cause == "invalid response structure"
    assert cache.entry is entry
    assert cache.entry.reading is first
    assert cache.entry.fetched_at == 0.0
