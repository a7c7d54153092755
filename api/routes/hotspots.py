"""Manual and scheduled triggers for hotspot polling."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from pydantic import BaseModel

from api.config import settings
from api.errors import error_response
from ingest.monitor import DASHBOARD, HotspotMonitor, PollOptions, PollResult, get_monitor

LOGGER = logging.getLogger(__name__)

hotspots_router = APIRouter(tags=["hotspots"])


class CheckRequest(BaseModel):
    force_notify: bool = False
    test_mode: bool = False


def _poll_failure(result: PollResult):
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "poll_failed",
        result.error or "Hotspot poll failed",
        details={"timestamp": result.timestamp.isoformat()},
    )


def _summary(monitor: HotspotMonitor, result: PollResult) -> dict:
    geofences = monitor.geofences
    payload = result.to_dict()
    payload["province"] = geofences.province.name
    payload["districts"] = [region.name for region in geofences.districts]
    payload["is_satellite_pass_time"] = monitor.is_pass_time()
    return payload


@hotspots_router.get("/hotspots/check")
async def check_hotspots(monitor: HotspotMonitor = Depends(get_monitor)):
    """Dashboard view: list detections and what is new since the last view, never alerting.

    Uses its own known-id set, so viewing does not hide detections from the
    next scheduled alert.
    """
    result = await monitor.run(PollOptions(notify=False, channel=DASHBOARD))
    if not result.success:
        return _poll_failure(result)
    return _summary(monitor, result)


@hotspots_router.post("/hotspots/check")
async def trigger_check(
    body: Optional[CheckRequest] = None,
    monitor: HotspotMonitor = Depends(get_monitor),
):
    """Manual trigger with force-notify and test-mode overrides."""
    body = body or CheckRequest()
    result = await monitor.run(
        PollOptions(force_notify=body.force_notify, test_mode=body.test_mode)
    )
    if not result.success:
        return _poll_failure(result)
    payload = _summary(monitor, result)
    payload["mode"] = "test" if body.test_mode else "production"
    payload["force_notify"] = body.force_notify
    return payload


@hotspots_router.get("/cron")
async def scheduled_check(
    authorization: Optional[str] = Header(default=None),
    monitor: HotspotMonitor = Depends(get_monitor),
):
    """Scheduler entrypoint; polls and alerts only inside a satellite pass window."""
    if not settings.cron_authorized(authorization):
        return error_response(status.HTTP_401_UNAUTHORIZED, "unauthorized", "Unauthorized")

    if not monitor.is_pass_time():
        LOGGER.info("Not satellite pass time, skipping scheduled check")
        return {
            "success": True,
            "action": "skipped",
            "reason": "Not satellite pass time",
            "timestamp": monitor.local_now().isoformat(),
        }

    result = await monitor.run(PollOptions())
    if not result.success:
        return _poll_failure(result)
    return result.to_dict(include_detections=False)


@hotspots_router.post("/notifications/test")
async def send_test_notification(monitor: HotspotMonitor = Depends(get_monitor)):
    """Send a LINE test message to confirm delivery credentials."""
    sent = await monitor.send_test_message()
    return {
        "success": sent,
        "message": "Test message sent successfully" if sent else "Failed to send test message",
        "timestamp": monitor.local_now().isoformat(),
    }
