"""Helpers for downloading and parsing NASA FIRMS CSV feeds."""

from __future__ import annotations

import csv
import logging
import math
from typing import Dict, List, Protocol, Sequence

import httpx

from ingest.logging_utils import log_event, mask_secret
from ingest.models import NUMERIC_FIELDS, TEXT_FIELDS, RawHotspotRow

LOGGER = logging.getLogger(__name__)
FIRMS_BASE_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv"
# FIRMS answers some bad requests with HTTP 200 and a plain-text message.
ERROR_BODY_MARKERS = ("Invalid", "Error")

BBox = tuple[float, float, float, float]  # (west, south, east, north)


class FIRMSClientError(RuntimeError):
    """Raised when a FIRMS feed cannot be fetched or reports an error."""


class FeedFetcher(Protocol):
    async def fetch(self, sensor: str, bbox: BBox, lookback_days: int) -> str:
        ...


def format_bbox(bbox: BBox) -> str:
    return ",".join(f"{value:.5f}".rstrip("0").rstrip(".") for value in bbox)


def build_firms_url(
    map_key: str,
    sensor: str,
    bbox: BBox,
    lookback_days: int,
    base_url: str = FIRMS_BASE_URL,
) -> str:
    """Construct the FIRMS area API URL for a sensor and bounding box."""
    return f"{base_url.rstrip('/')}/{map_key}/{sensor}/{format_bbox(bbox)}/{lookback_days}"


def _parse_numeric(header: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        if value:
            LOGGER.debug("Unparseable %s value %r; using 0.0", header, value)
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _build_row(headers: Sequence[str], values: Sequence[str]) -> RawHotspotRow:
    numeric: Dict[str, float] = {}
    text: Dict[str, str] = {}
    extra: Dict[str, str] = {}
    for index, header in enumerate(headers):
        value = values[index].strip() if index < len(values) else ""
        if header in NUMERIC_FIELDS:
            numeric[header] = _parse_numeric(header, value)
        elif header in TEXT_FIELDS:
            text[header] = value
        elif header:
            extra[header] = value
    return RawHotspotRow(**numeric, **text, extra=extra)


def parse_feed_text(text: str) -> List[RawHotspotRow]:
    """Parse a comma-delimited feed with a header row into ``RawHotspotRow``s.

    Short rows are padded with empty strings, numeric columns that fail to
    parse become ``0.0``. A body without data rows yields an empty list.
    """
    lines = [line for line in text.lstrip("\ufeff").strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    reader = csv.reader(lines)
    headers = [header.strip() for header in next(reader)]
    return [_build_row(headers, values) for values in reader]


def is_error_body(text: str) -> bool:
    return any(marker in text for marker in ERROR_BODY_MARKERS)


class FirmsFeedClient:
    """Async FIRMS area-API client; one instance can serve many sensors."""

    def __init__(
        self,
        map_key: str,
        *,
        base_url: str = FIRMS_BASE_URL,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.map_key = map_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch(self, sensor: str, bbox: BBox, lookback_days: int) -> str:
        if not self.map_key:
            raise FIRMSClientError("FIRMS map key is not configured")

        url = build_firms_url(self.map_key, sensor, bbox, lookback_days, base_url=self.base_url)
        log_event(
            LOGGER,
            "hotspots.fetch",
            "Requesting FIRMS CSV",
            sensor=sensor,
            bbox=format_bbox(bbox),
            day_range=lookback_days,
            key=mask_secret(self.map_key),
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers={"Accept": "text/csv"})
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FIRMSClientError(
                f"FIRMS returned HTTP {exc.response.status_code} for {sensor}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FIRMSClientError(f"Failed to fetch FIRMS data for {sensor}: {exc}") from exc

        body = response.text
        if is_error_body(body):
            raise FIRMSClientError(f"FIRMS reported an error for {sensor}: {body[:200].strip()}")
        return body
