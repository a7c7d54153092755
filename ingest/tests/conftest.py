"""Shared fixtures for hotspot pipeline tests.

Feeds are served by ``FakeFetcher`` so nothing touches the network; the
bundled ``ingest/data/regions.yaml`` provides the real geofences.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from ingest.config import DEFAULT_REGIONS_PATH  # noqa: E402
from ingest.firms_client import FIRMSClientError  # noqa: E402
from ingest.geofence import load_geofence_config  # noqa: E402
from ingest.models import Detection, compute_detection_id  # noqa: E402
from ingest.pass_filter import AFTERNOON, NIGHT, PassFilter, PassWindow  # noqa: E402
from ingest.pipeline import HotspotPipeline  # noqa: E402

VIIRS_HEADER = (
    "latitude,longitude,bright_ti4,scan,track,acq_date,acq_time,satellite,"
    "instrument,confidence,version,bright_ti5,frp,daynight"
)
# 2024-03-15 14:00 in Bangkok.
POLL_NOW = datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc)


def viirs_row(lat, lon, acq_date="2024-03-15", acq_time="0630", satellite="N", frp="5.2"):
    return f"{lat},{lon},330.5,0.39,0.36,{acq_date},{acq_time},{satellite},VIIRS,n,2.0NRT,290.1,{frp},D"


def viirs_feed(*rows):
    return "\n".join([VIIRS_HEADER, *rows]) + "\n"


class FakeFetcher:
    """Returns canned feed text per sensor, or raises when given an exception."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def fetch(self, sensor, bbox, lookback_days):
        self.calls.append((sensor, bbox, lookback_days))
        response = self.responses.get(sensor, "")
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture(scope="session")
def geofences():
    return load_geofence_config(DEFAULT_REGIONS_PATH)


@pytest.fixture
def pass_filter():
    return PassFilter("Asia/Bangkok", [PassWindow(NIGHT, 1, 3), PassWindow(AFTERNOON, 13, 16)])


@pytest.fixture
def make_pipeline(geofences, pass_filter):
    def _make(responses, sources=("VIIRS_SNPP_NRT", "VIIRS_NOAA20_NRT", "MODIS_NRT"), timeout=5.0):
        return HotspotPipeline(
            FakeFetcher(responses),
            geofences,
            pass_filter,
            sources=sources,
            lookback_days=3,
            fetch_timeout_seconds=timeout,
        )

    return _make


@pytest.fixture
def source_failure():
    return FIRMSClientError("FIRMS returned HTTP 500 for VIIRS_NOAA20_NRT")


@pytest.fixture
def poll_now():
    return POLL_NOW


@pytest.fixture
def feed():
    """Builder for a VIIRS CSV body from ``(lat, lon, **overrides)`` tuples."""

    def _feed(*points):
        rows = []
        for point in points:
            lat, lon, *rest = point
            overrides = rest[0] if rest else {}
            rows.append(viirs_row(lat, lon, **overrides))
        return viirs_feed(*rows)

    return _feed


@pytest.fixture
def make_detection():
    def _make(lat=14.1, lon=99.5, acq_time="0630", district="Mueang Kanchanaburi", **overrides):
        fields = dict(
            id=compute_detection_id(lat, lon, "2024-03-15", acq_time),
            latitude=lat,
            longitude=lon,
            acq_date="2024-03-15",
            acq_time=acq_time,
            source="VIIRS_SNPP_NRT",
            satellite="N",
            confidence="n",
            version="2.0NRT",
            daynight="D",
            brightness=330.5,
            bright_t31=290.1,
            frp=5.2,
            scan=0.39,
            track=0.36,
            province="Kanchanaburi",
            district=district,
            pass_window="afternoon",
            local_time="2024-03-15T13:30:00+07:00",
            grid_reference="47P 553965 E 1559138 N",
        )
        fields.update(overrides)
        return Detection(**fields)

    return _make
