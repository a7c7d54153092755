"""Configuration for hotspot polling and alerting."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, List, Tuple

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_REGIONS_PATH = Path(__file__).resolve().parent / "data" / "regions.yaml"
DEFAULT_SOURCES = ["VIIRS_SNPP_NRT", "VIIRS_NOAA20_NRT", "MODIS_NRT"]
load_dotenv(REPO_ROOT / ".env", override=False)


def _parse_hour_range(value: object, label: str) -> Tuple[int, int]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        start, end = (int(v) for v in value)
    elif isinstance(value, str):
        parts = [p.strip() for p in value.replace(",", "-").split("-") if p.strip()]
        if len(parts) != 2:
            raise ValueError(f"{label} must look like 'start-end' (hours, end exclusive)")
        start, end = int(parts[0]), int(parts[1])
    else:
        raise ValueError(f"{label} must be a 'start-end' string or a pair of hours")
    if not (0 <= start < end <= 24):
        raise ValueError(f"{label} must satisfy 0 <= start < end <= 24")
    return start, end


class HotspotSettings(BaseSettings):
    """Environment-driven configuration for the hotspot pipeline."""

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream feed
    map_key: str = Field(default="", validation_alias="FIRMS_MAP_KEY")
    firms_base_url: str = Field(
        default="https://firms.modaps.eosdis.nasa.gov/api/area/csv",
        validation_alias="FIRMS_BASE_URL",
    )
    sources: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SOURCES),
        validation_alias="FIRMS_SOURCES",
    )
    day_range: int = Field(default=3, validation_alias="FIRMS_DAY_RANGE")
    fetch_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="HOTSPOT_FETCH_TIMEOUT_SECONDS",
    )

    # Temporal filter
    timezone: str = Field(default="Asia/Bangkok", validation_alias="HOTSPOT_TIMEZONE")
    night_pass: Annotated[Tuple[int, int], NoDecode] = Field(
        default=(1, 3),
        validation_alias="HOTSPOT_NIGHT_PASS",
    )
    afternoon_pass: Annotated[Tuple[int, int], NoDecode] = Field(
        default=(13, 16),
        validation_alias="HOTSPOT_AFTERNOON_PASS",
    )

    # Geofences
    regions_path: Path = Field(default=DEFAULT_REGIONS_PATH, validation_alias="HOTSPOT_REGIONS_PATH")
    protected_areas_geojson: Path | None = Field(
        default=None,
        validation_alias="HOTSPOT_PROTECTED_AREAS_GEOJSON",
    )

    # Novelty state
    novelty_backend: str = Field(default="memory", validation_alias="HOTSPOT_NOVELTY_BACKEND")
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    suppress_cold_start: bool = Field(default=False, validation_alias="HOTSPOT_SUPPRESS_COLD_START")
    commit_on_delivery_failure: bool = Field(
        default=True,
        validation_alias="HOTSPOT_COMMIT_ON_DELIVERY_FAILURE",
    )

    # LINE Messaging API
    line_channel_access_token: str = Field(default="", validation_alias="LINE_CHANNEL_ACCESS_TOKEN")
    line_group_id: str = Field(default="", validation_alias="LINE_GROUP_ID")
    line_api_url: str = Field(
        default="https://api.line.me/v2/bot/message/push",
        validation_alias="LINE_API_URL",
    )
    line_timeout_seconds: float = Field(default=10.0, validation_alias="LINE_TIMEOUT_SECONDS")

    @field_validator("sources", mode="before")
    @classmethod
    def _split_sources(cls, value: object) -> List[str]:
        if value is None:
            return list(DEFAULT_SOURCES)
        if isinstance(value, str):
            return [segment.strip().upper() for segment in value.split(",") if segment.strip()]
        if isinstance(value, list):
            return value
        raise ValueError("FIRMS_SOURCES must be a comma-separated string or list.")

    @field_validator("day_range", mode="before")
    @classmethod
    def _validate_day_range(cls, value: object) -> int:
        val = int(value)  # raises if not numeric
        if not 1 <= val <= 10:
            raise ValueError("FIRMS_DAY_RANGE must be between 1 and 10")
        return val

    @field_validator("night_pass", mode="before")
    @classmethod
    def _parse_night_pass(cls, value: object) -> Tuple[int, int]:
        return _parse_hour_range(value, "HOTSPOT_NIGHT_PASS")

    @field_validator("afternoon_pass", mode="before")
    @classmethod
    def _parse_afternoon_pass(cls, value: object) -> Tuple[int, int]:
        return _parse_hour_range(value, "HOTSPOT_AFTERNOON_PASS")

    @field_validator("novelty_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> str:
        backend = str(value or "memory").strip().lower()
        if backend not in {"memory", "redis"}:
            raise ValueError("HOTSPOT_NOVELTY_BACKEND must be 'memory' or 'redis'")
        return backend

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}"

    @property
    def line_configured(self) -> bool:
        return bool(self.line_channel_access_token and self.line_group_id)


settings = HotspotSettings()
