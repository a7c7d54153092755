"""Satellite overpass windows and the "is this today's detection" check.

FIRMS reports acquisition date/time on the UTC clock. The region is polled
with a multi-day lookback because the night pass falls on the previous UTC
calendar day, so every reading is converted to local time, classified into a
pass window, and kept only when its local date equals the local date "now".

Everything here is a pure function of its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ingest.models import normalize_acq_time

NIGHT = "night"
AFTERNOON = "afternoon"


@dataclass(frozen=True, slots=True)
class PassWindow:
    """Local hour range ``[start_hour, end_hour)`` of an expected overpass."""

    name: str
    start_hour: int
    end_hour: int

    def contains_hour(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass(frozen=True, slots=True)
class PassDecision:
    local_time: Optional[datetime]
    window: Optional[str]
    is_today: bool

    @property
    def accepted(self) -> bool:
        return self.window is not None and self.is_today


def parse_acquisition_utc(acq_date: str, acq_time: str) -> Optional[datetime]:
    """Combine FIRMS ``YYYY-MM-DD`` and ``HHMM`` fields into an aware UTC datetime."""
    date_str = (acq_date or "").strip()
    time_str = normalize_acq_time(acq_time)
    if not date_str or len(time_str) != 4:
        return None
    try:
        parsed = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H%M")
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


class PassFilter:
    def __init__(self, tz_name: str, windows: Sequence[PassWindow]) -> None:
        self.tz = ZoneInfo(tz_name)
        self.windows: tuple[PassWindow, ...] = tuple(windows)

    @classmethod
    def from_settings(cls, config) -> "PassFilter":
        return cls(
            config.timezone,
            [
                PassWindow(NIGHT, *config.night_pass),
                PassWindow(AFTERNOON, *config.afternoon_pass),
            ],
        )

    def to_local(self, acq_date: str, acq_time: str) -> Optional[datetime]:
        utc_dt = parse_acquisition_utc(acq_date, acq_time)
        return utc_dt.astimezone(self.tz) if utc_dt else None

    def classify(self, local_dt: datetime) -> Optional[str]:
        hour = local_dt.astimezone(self.tz).hour
        for window in self.windows:
            if window.contains_hour(hour):
                return window.name
        return None

    def local_date(self, now: datetime):
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        return now.astimezone(self.tz).date()

    def is_today(self, local_dt: datetime, now: datetime) -> bool:
        return local_dt.astimezone(self.tz).date() == self.local_date(now)

    def evaluate(self, acq_date: str, acq_time: str, now: datetime) -> PassDecision:
        local_dt = self.to_local(acq_date, acq_time)
        if local_dt is None:
            return PassDecision(local_time=None, window=None, is_today=False)
        return PassDecision(
            local_time=local_dt,
            window=self.classify(local_dt),
            is_today=self.is_today(local_dt, now),
        )

    def is_pass_time(self, now: datetime) -> bool:
        """Whether the wall clock itself is inside a pass window."""
        return self.classify(now) is not None
