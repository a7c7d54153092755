"""Common data structures for hotspot ingestion."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping

NUMERIC_FIELDS = frozenset(
    {
        "latitude",
        "longitude",
        "brightness",
        "scan",
        "track",
        "bright_ti4",
        "bright_ti5",
        "bright_t31",
        "frp",
    }
)
TEXT_FIELDS = (
    "acq_date",
    "acq_time",
    "satellite",
    "instrument",
    "confidence",
    "version",
    "daynight",
)


def normalize_acq_time(acq_time: str) -> str:
    """Return the FIRMS ``HHMM`` clock padded to four digits ("630" -> "0630")."""
    cleaned = (acq_time or "").strip().replace(":", "")
    return cleaned.zfill(4) if cleaned else ""


def compute_detection_id(lat: float, lon: float, acq_date: str, acq_time: str) -> str:
    """Create the stable cross-sensor identifier for a reading.

    Readings that round to the same 4-decimal coordinates and share the UTC
    acquisition date and time map to the same id, whichever sensor saw them.
    """
    date_token = (acq_date or "").strip().replace("-", "")
    return f"{round(lat, 4):.4f}_{round(lon, 4):.4f}_{date_token}{normalize_acq_time(acq_time)}"


@dataclass(frozen=True, slots=True)
class RawHotspotRow:
    """One parsed feed row with explicit defaults for absent values."""

    latitude: float = 0.0
    longitude: float = 0.0
    brightness: float = 0.0
    scan: float = 0.0
    track: float = 0.0
    bright_ti4: float = 0.0
    bright_ti5: float = 0.0
    bright_t31: float = 0.0
    frp: float = 0.0
    acq_date: str = ""
    acq_time: str = ""
    satellite: str = ""
    instrument: str = ""
    confidence: str = ""
    version: str = ""
    daynight: str = ""
    extra: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Detection:
    """Normalized, enriched hotspot ready for novelty tracking and display."""

    id: str
    latitude: float
    longitude: float
    acq_date: str
    acq_time: str
    source: str
    satellite: str
    confidence: str
    version: str
    daynight: str
    brightness: float
    bright_t31: float
    frp: float
    scan: float
    track: float
    province: str
    district: str
    pass_window: str
    local_time: str
    protected_area: str | None = None
    protected_area_type: str | None = None
    grid_reference: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
