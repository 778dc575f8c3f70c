"""Client for the Environment Agency flood-monitoring measurement resource."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

import httpx

from models.records import Reading

logger = logging.getLogger(__name__)

API_URL = (
    "https://environment.data.gov.uk/flood-monitoring/id/measures/"
    "2200TH-flow--Mean-15_min-m3_s"
)
DEFAULT_LABEL = "River Flow"


class FetchError(Exception):
    """Raised when a current reading cannot be obtained from upstream."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause


class NetworkError(FetchError):
    """Connection failure, timeout, or non-success HTTP status."""


class ParseError(FetchError):
    """Malformed JSON or a payload missing the expected fields."""


def extract_latest_reading(payload: Any) -> Tuple[Optional[str], Mapping[str, Any]]:
    """Return the station label and ``latestReading`` node from a measure payload.

    The single-measure endpoint answers with ``items`` as an object; list
    endpoints wrap the same object in an array. Both are accepted here so the
    rest of the code only deals with one shape.
    """
    if not isinstance(payload, Mapping):
        raise ParseError("invalid response structure")

    items = payload.get("items")
    if isinstance(items, list):
        items = items[0] if items else None
    if not isinstance(items, Mapping):
        raise ParseError("invalid response structure")

    latest = items.get("latestReading")
    if not isinstance(latest, Mapping):
        raise ParseError("invalid response structure")
    if "dateTime" not in latest or "value" not in latest:
        raise ParseError("invalid response structure")

    label = items.get("label")
    if not isinstance(label, str) or not label.strip():
        label = None
    return label, latest


def parse_reading(payload: Any) -> Reading:
    """Validate an upstream payload and build a :class:`Reading` from it."""
    label, latest = extract_latest_reading(payload)
    timestamp = _parse_timestamp(latest["dateTime"])
    value = _parse_value(latest["value"])
    return Reading(label=label or DEFAULT_LABEL, timestamp=timestamp, value=value)


def _parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise ParseError("missing reading timestamp")

    candidate = raw.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ParseError(f"invalid reading timestamp {raw!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def _parse_value(raw: Any) -> float:
    # bool is an int subclass; a flag is never a flow value
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ParseError(f"invalid flow value {raw!r}")
    try:
        value = float(raw)
    except ValueError as exc:
        raise ParseError(f"invalid flow value {raw!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ParseError(f"invalid flow value {raw!r}")
    return value


class FlowApiClient:
    """Single-attempt async fetcher for the latest flow reading."""

    def __init__(
        self,
        timeout: float = 10.0,
        url: str = API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_latest(self) -> Reading:
        try:
            response = await self._client.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Upstream request timed out", extra={"reason": "timeout"})
            raise NetworkError("timeout") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning(
                "Upstream returned an error status",
                extra={"status_code": status_code},
            )
            raise NetworkError(f"upstream returned status {status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Upstream request failed", extra={"reason": str(exc)})
            raise NetworkError(f"request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Upstream body is not JSON", extra={"reason": "invalid JSON"})
            raise ParseError("invalid JSON") from exc

        try:
            reading = parse_reading(payload)
        except ParseError as exc:
            logger.warning("Upstream payload rejected", extra={"reason": exc.cause})
            raise

        logger.info(
            "Fetched latest reading",
            extra={"station": reading.label, "value": reading.value},
        )
        return reading
