"""Pytest configuration for api tests.

Adds the workspace root to sys.path so api tests can import from ingest,
and provides a stub monitor that the routes receive through
``app.dependency_overrides`` instead of the real FIRMS/LINE wiring.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add workspace root to Python path for cross-module imports
workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from ingest.config import DEFAULT_REGIONS_PATH  # noqa: E402
from ingest.geofence import load_geofence_config  # noqa: E402
from ingest.monitor import PollResult  # noqa: E402

POLL_TIME = datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc)


class StubMonitor:
    """Records poll options and replays a canned result."""

    def __init__(self, result=None, pass_time=True, test_message_sent=True):
        self.geofences = load_geofence_config(DEFAULT_REGIONS_PATH)
        self.result = result or PollResult(success=True, action="checked", timestamp=POLL_TIME)
        self.pass_time = pass_time
        self.test_message_sent = test_message_sent
        self.calls = []

    def local_now(self, now=None):
        return POLL_TIME

    def is_pass_time(self):
        return self.pass_time

    async def run(self, options):
        self.calls.append(options)
        return self.result

    async def send_test_message(self):
        return self.test_message_sent


@pytest.fixture
def stub_monitor():
    return StubMonitor()


@pytest.fixture
def client(stub_monitor):
    from fastapi.testclient import TestClient

    from api.main import app
    from ingest.monitor import get_monitor

    app.dependency_overrides[get_monitor] = lambda: stub_monitor
    yield TestClient(app)
    app.dependency_overrides.clear()
