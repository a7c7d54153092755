"""Normalization and enrichment of multi-sensor FIRMS readings."""

from __future__ import annotations

import asyncio
import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from ingest.firms_client import FIRMSClientError, FeedFetcher, parse_feed_text
from ingest.geofence import GeofenceConfig
from ingest.grid_ref import utm_string
from ingest.logging_utils import log_event
from ingest.models import Detection, RawHotspotRow, compute_detection_id, normalize_acq_time
from ingest.pass_filter import PassFilter

LOGGER = logging.getLogger(__name__)


@dataclass
class SourceReport:
    """Per-sensor counters for one pipeline run."""

    source: str
    fetched: int = 0
    outside_province: int = 0
    outside_window: int = 0
    kept: int = 0
    error: Optional[str] = None


def satellite_label(row: RawHotspotRow, source: str) -> str:
    if row.satellite:
        return row.satellite
    parts = source.split("_")
    return parts[1] if len(parts) > 2 else parts[0]


def dedupe_detections(detections: Iterable[Detection]) -> List[Detection]:
    """Drop repeated ids, keeping the first occurrence (sensor order wins)."""
    seen: set[str] = set()
    unique: List[Detection] = []
    for detection in detections:
        if detection.id in seen:
            continue
        seen.add(detection.id)
        unique.append(detection)
    return unique


class HotspotPipeline:
    """Fetch every configured sensor and turn its rows into enriched detections."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        geofences: GeofenceConfig,
        pass_filter: PassFilter,
        *,
        sources: Sequence[str],
        lookback_days: int,
        fetch_timeout_seconds: float,
        grid_reference: Callable[[float, float], str] = utm_string,
    ) -> None:
        self.fetcher = fetcher
        self.geofences = geofences
        self.pass_filter = pass_filter
        self.sources = tuple(sources)
        self.lookback_days = lookback_days
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.grid_reference = grid_reference
        self.last_reports: List[SourceReport] = []

    async def _fetch_rows(self, source: str) -> tuple[List[RawHotspotRow], Optional[str]]:
        """Fetch and parse one source; any failure stays local to that source."""
        try:
            text = await asyncio.wait_for(
                self.fetcher.fetch(source, self.geofences.province.bounds, self.lookback_days),
                timeout=self.fetch_timeout_seconds,
            )
            return parse_feed_text(text), None
        except FIRMSClientError as exc:
            log_event(
                LOGGER,
                "hotspots.fetch",
                "Source unavailable",
                level="warning",
                source=source,
                error=str(exc),
            )
            return [], str(exc)
        except asyncio.TimeoutError:
            log_event(
                LOGGER,
                "hotspots.fetch",
                "Source timed out",
                level="warning",
                source=source,
                timeout_seconds=self.fetch_timeout_seconds,
            )
            return [], "timeout"
        except csv.Error as exc:
            log_event(
                LOGGER,
                "hotspots.fetch",
                "Malformed feed body",
                level="warning",
                source=source,
                error=str(exc),
            )
            return [], f"malformed feed: {exc}"
        except Exception as exc:
            LOGGER.exception("Fetch failed for source=%s", source)
            return [], f"{type(exc).__name__}: {exc}"

    def normalize(
        self,
        row: RawHotspotRow,
        source: str,
        now: datetime,
        report: SourceReport,
    ) -> Optional[Detection]:
        lat, lon = row.latitude, row.longitude
        if not self.geofences.province.contains(lat, lon):
            report.outside_province += 1
            return None

        decision = self.pass_filter.evaluate(row.acq_date, row.acq_time, now)
        if not decision.accepted:
            report.outside_window += 1
            LOGGER.debug(
                "Dropping %s %s UTC (local=%s window=%s today=%s)",
                row.acq_date,
                row.acq_time,
                decision.local_time,
                decision.window,
                decision.is_today,
            )
            return None

        protected = self.geofences.protected_areas.find(lat, lon)
        return Detection(
            id=compute_detection_id(lat, lon, row.acq_date, row.acq_time),
            latitude=lat,
            longitude=lon,
            acq_date=row.acq_date,
            acq_time=normalize_acq_time(row.acq_time),
            source=source,
            satellite=satellite_label(row, source),
            confidence=row.confidence,
            version=row.version,
            daynight=row.daynight,
            brightness=row.brightness or row.bright_ti4,
            bright_t31=row.bright_t31 or row.bright_ti5,
            frp=row.frp,
            scan=row.scan,
            track=row.track,
            province=self.geofences.province.name,
            district=self.geofences.resolve_district(lat, lon),
            pass_window=decision.window or "",
            local_time=decision.local_time.isoformat() if decision.local_time else "",
            protected_area=protected.name if protected else None,
            protected_area_type=protected.area_type if protected else None,
            grid_reference=self.grid_reference(lat, lon),
        )

    async def collect(self, now: datetime) -> List[Detection]:
        """Run one poll's worth of fetch, filter, enrichment and dedupe."""
        fetched = await asyncio.gather(*(self._fetch_rows(source) for source in self.sources))

        reports: List[SourceReport] = []
        merged: List[Detection] = []
        for source, (rows, error) in zip(self.sources, fetched):
            report = SourceReport(source=source, fetched=len(rows), error=error)
            for row in rows:
                detection = self.normalize(row, source, now, report)
                if detection is not None:
                    merged.append(detection)
                    report.kept += 1
            reports.append(report)
            log_event(
                LOGGER,
                "hotspots.filter",
                "Source processed",
                source=source,
                fetched=report.fetched,
                outside_province=report.outside_province,
                outside_window=report.outside_window,
                kept=report.kept,
                error=report.error,
            )

        unique = dedupe_detections(merged)
        self.last_reports = reports
        log_event(
            LOGGER,
            "hotspots.pipeline",
            "Pipeline run complete",
            merged=len(merged),
            unique=len(unique),
            failed_sources=[r.source for r in reports if r.error] or None,
        )
        return unique
