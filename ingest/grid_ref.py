"""UTM grid references for display alongside lat/lon."""

from __future__ import annotations

import logging
import math
from functools import lru_cache

from pyproj import Transformer

LOGGER = logging.getLogger(__name__)
# MGRS latitude bands, 8 degrees each from 80S; "X" covers 72N-84N.
LATITUDE_BANDS = "CDEFGHJKLMNPQRSTUVWX"
UNAVAILABLE = "N/A"


def utm_zone(lat: float, lon: float) -> int:
    """Return the UTM zone number, including the Norway/Svalbard exceptions."""
    if not (-180.0 <= lon <= 180.0):
        raise ValueError(f"longitude out of range: {lon}")
    zone = int((lon + 180.0) // 6) + 1
    zone = min(zone, 60)
    if 56.0 <= lat < 64.0 and 3.0 <= lon < 12.0:
        return 32
    if 72.0 <= lat <= 84.0 and lon >= 0.0:
        if lon < 9.0:
            return 31
        if lon < 21.0:
            return 33
        if lon < 33.0:
            return 35
        if lon < 42.0:
            return 37
    return zone


def latitude_band(lat: float) -> str:
    if not (-80.0 <= lat <= 84.0):
        raise ValueError(f"latitude outside UTM coverage: {lat}")
    index = min(int((lat + 80.0) // 8), len(LATITUDE_BANDS) - 1)
    return LATITUDE_BANDS[index]


@lru_cache(maxsize=128)
def _transformer(epsg: int) -> Transformer:
    return Transformer.from_crs("EPSG:4326", f"EPSG:{epsg}", always_xy=True)


def to_utm(lat: float, lon: float) -> tuple[int, str, float, float]:
    """Project WGS84 coordinates to ``(zone, band, easting, northing)``."""
    zone = utm_zone(lat, lon)
    band = latitude_band(lat)
    epsg = (32600 if lat >= 0 else 32700) + zone
    easting, northing = _transformer(epsg).transform(lon, lat)
    if not (math.isfinite(easting) and math.isfinite(northing)):
        raise ValueError(f"projection failed for ({lat}, {lon})")
    return zone, band, easting, northing


def utm_string(lat: float, lon: float) -> str:
    """Format as ``"47P 543210 E 1567890 N"``; ``"N/A"`` when not projectable."""
    try:
        zone, band, easting, northing = to_utm(lat, lon)
    except ValueError as exc:
        LOGGER.debug("UTM conversion failed for (%s, %s): %s", lat, lon, exc)
        return UNAVAILABLE
    return f"{zone}{band} {round(easting)} E {round(northing)} N"
