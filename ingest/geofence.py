"""Named geofences (province envelope, districts, protected areas).

Regions are configured once at startup from ``ingest/data/regions.yaml`` and
never change afterwards. Each registry is an ordered tuple scanned linearly;
the first region whose geometry covers the point wins, so list order is the
only overlap rule. Containment is boundary-inclusive.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml
from shapely.geometry import Point, box, shape
from shapely.geometry.base import BaseGeometry

LOGGER = logging.getLogger(__name__)
DEFAULT_PROTECTED_AREA_NAME = "Protected area"
GEOJSON_NAME_KEYS = ("name", "NAME", "NAME_TH", "name_th")


class RegionConfigError(ValueError):
    """Raised when a region definition file is malformed."""


@dataclass(frozen=True)
class Region:
    name: str
    kind: str
    geometry: BaseGeometry
    name_en: str | None = None
    area_type: str | None = None

    def contains(self, lat: float, lon: float) -> bool:
        # Shapely works in (x, y) = (lon, lat).
        return self.geometry.covers(Point(lon, lat))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(west, south, east, north)`` of the region geometry."""
        return tuple(self.geometry.bounds)  # type: ignore[return-value]


def envelope_region(
    name: str,
    kind: str,
    *,
    min_lat: float,
    max_lat: float,
    min_lon: float,
    max_lon: float,
    name_en: str | None = None,
    area_type: str | None = None,
) -> Region:
    """Build an axis-aligned rectangular region."""
    if min_lat >= max_lat or min_lon >= max_lon:
        raise RegionConfigError(f"Region '{name}' has an empty envelope")
    return Region(
        name=name,
        kind=kind,
        geometry=box(min_lon, min_lat, max_lon, max_lat),
        name_en=name_en,
        area_type=area_type,
    )


class GeofenceRegistry:
    """Ordered, immutable collection of regions with first-match lookup."""

    def __init__(self, regions: Iterable[Region]) -> None:
        self._regions: tuple[Region, ...] = tuple(regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self):
        return iter(self._regions)

    def find(self, lat: float, lon: float) -> Optional[Region]:
        for region in self._regions:
            if region.contains(lat, lon):
                return region
        return None

    def name_at(self, lat: float, lon: float) -> Optional[str]:
        region = self.find(lat, lon)
        return region.name if region else None


@dataclass(frozen=True)
class GeofenceConfig:
    province: Region
    districts: GeofenceRegistry
    protected_areas: GeofenceRegistry
    nearby_label: str

    def resolve_district(self, lat: float, lon: float) -> str:
        return self.districts.name_at(lat, lon) or self.nearby_label


def _region_from_entry(entry: Mapping[str, Any], kind: str) -> Region:
    name = entry.get("name")
    bounds = entry.get("bounds")
    if not name or not isinstance(bounds, Mapping):
        raise RegionConfigError(f"Each {kind} entry needs 'name' and 'bounds'")
    try:
        edges = {key: float(bounds[key]) for key in ("min_lat", "max_lat", "min_lon", "max_lon")}
    except (KeyError, TypeError, ValueError) as exc:
        raise RegionConfigError(f"Invalid bounds for {kind} '{name}': {exc}") from exc
    return envelope_region(
        str(name),
        kind,
        name_en=entry.get("name_en"),
        area_type=entry.get("type"),
        **edges,
    )


def _entries(raw: Mapping[str, Any], key: str) -> Sequence[Mapping[str, Any]]:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise RegionConfigError(f"'{key}' must be a list")
    return value


def load_protected_areas_geojson(path: Path | str) -> List[Region]:
    """Load polygon features from a GeoJSON FeatureCollection, in file order."""
    with open(path, "r", encoding="utf-8") as f:
        collection = json.load(f)

    regions: List[Region] = []
    for feature in collection.get("features") or []:
        geometry = feature.get("geometry")
        if not geometry:
            continue
        props: Dict[str, Any] = feature.get("properties") or {}
        name = next((props[k] for k in GEOJSON_NAME_KEYS if props.get(k)), DEFAULT_PROTECTED_AREA_NAME)
        try:
            geom = shape(geometry)
        except (ValueError, TypeError, AttributeError) as exc:
            LOGGER.warning("Skipping protected-area feature %s: %s", name, exc)
            continue
        regions.append(
            Region(
                name=str(name),
                kind="protected_area",
                geometry=geom,
                area_type=props.get("type") or props.get("TYPE"),
            )
        )
    LOGGER.info("Loaded %s protected-area polygons from %s", len(regions), path)
    return regions


def load_geofence_config(
    path: Path | str,
    protected_areas_geojson: Path | str | None = None,
) -> GeofenceConfig:
    """Read the region YAML; GeoJSON polygons, when given, replace its protected areas."""
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, Mapping) or not isinstance(raw.get("province"), Mapping):
        raise RegionConfigError(f"{path}: a 'province' mapping is required")

    province = _region_from_entry(raw["province"], "province")
    districts = [_region_from_entry(e, "district") for e in _entries(raw, "districts")]
    if protected_areas_geojson:
        protected = load_protected_areas_geojson(protected_areas_geojson)
    else:
        protected = [_region_from_entry(e, "protected_area") for e in _entries(raw, "protected_areas")]

    return GeofenceConfig(
        province=province,
        districts=GeofenceRegistry(districts),
        protected_areas=GeofenceRegistry(protected),
        nearby_label=str(raw.get("nearby_label") or "Nearby area"),
    )
