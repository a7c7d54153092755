"""One hotspot poll: collect, diff, alert, commit."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ingest.alerts import (
    LineMessenger,
    Messenger,
    create_alert,
    format_alert_messages,
    format_test_messages,
)
from ingest.config import HotspotSettings, settings as hotspot_settings
from ingest.firms_client import FirmsFeedClient
from ingest.geofence import GeofenceConfig, load_geofence_config
from ingest.logging_utils import log_event
from ingest.models import Detection
from ingest.novelty import (
    DASHBOARD_NAMESPACE,
    DEFAULT_NAMESPACE,
    InMemoryNoveltyStore,
    NoveltyTracker,
    RedisNoveltyStore,
)
from ingest.pass_filter import PassFilter
from ingest.pipeline import HotspotPipeline

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ALERTS = DEFAULT_NAMESPACE
DASHBOARD = DASHBOARD_NAMESPACE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PollOptions:
    """``force_notify`` alerts on every current detection; ``test_mode`` never commits.

    ``channel`` picks the known-id set the poll diffs and commits against.
    Dashboard views use their own set so viewing never consumes an alert.
    """

    force_notify: bool = False
    test_mode: bool = False
    notify: bool = True
    channel: str = ALERTS


@dataclass
class PollResult:
    success: bool
    action: str
    timestamp: datetime
    total: int = 0
    new: int = 0
    notification_sent: bool = False
    committed: bool = False
    detections: List[Detection] = field(default_factory=list)
    new_detections: List[Detection] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self, include_detections: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "action": self.action,
            "timestamp": self.timestamp.isoformat(),
            "stats": {"total": self.total, "new": self.new},
            "notification_sent": self.notification_sent,
            "committed": self.committed,
        }
        if self.error:
            payload["error"] = self.error
        if include_detections:
            payload["hotspots"] = [d.to_dict() for d in self.detections]
            payload["new_hotspots"] = [d.to_dict() for d in self.new_detections]
        return payload


class HotspotMonitor:
    """Owns the pipeline, the novelty trackers and the messenger for one process.

    ``tracker`` holds the ids already alerted on; ``dashboard_tracker`` holds
    the ids already shown by dashboard views. Both default to the same store
    under different namespaces. ``run`` holds a lock across diff, delivery and
    commit so overlapping triggers in the same process cannot both alert on
    one stale id set.
    """

    def __init__(
        self,
        pipeline: HotspotPipeline,
        tracker: NoveltyTracker,
        messenger: Messenger,
        *,
        dashboard_tracker: Optional[NoveltyTracker] = None,
        clock: Clock = utc_now,
        commit_on_delivery_failure: bool = True,
    ) -> None:
        self.pipeline = pipeline
        self.tracker = tracker
        self.dashboard_tracker = dashboard_tracker or NoveltyTracker(
            tracker.store, namespace=DASHBOARD
        )
        self.messenger = messenger
        self.clock = clock
        self.commit_on_delivery_failure = commit_on_delivery_failure
        self._lock = asyncio.Lock()

    @property
    def geofences(self) -> GeofenceConfig:
        return self.pipeline.geofences

    def tracker_for(self, channel: str) -> NoveltyTracker:
        if channel == ALERTS:
            return self.tracker
        if channel == DASHBOARD:
            return self.dashboard_tracker
        raise ValueError(f"Unknown poll channel: {channel}")

    def local_now(self, now: Optional[datetime] = None) -> datetime:
        return (now or self.clock()).astimezone(self.pipeline.pass_filter.tz)

    def is_pass_time(self) -> bool:
        return self.pipeline.pass_filter.is_pass_time(self.clock())

    async def run(self, options: PollOptions = PollOptions()) -> PollResult:
        now = self.clock()
        try:
            async with self._lock:
                return await self._run_locked(now, options)
        except Exception as exc:
            LOGGER.exception("Hotspot poll failed")
            return PollResult(success=False, action="error", timestamp=now, error=str(exc))

    async def _run_locked(self, now: datetime, options: PollOptions) -> PollResult:
        tracker = self.tracker_for(options.channel)
        current = await self.pipeline.collect(now)
        new = list(current) if options.force_notify else await tracker.diff(current)

        sent = False
        attempted = False
        if options.notify and (new or options.force_notify):
            alert = create_alert(new or current, current, now)
            messages = format_alert_messages(alert, self.geofences.province.name, self.local_now(now))
            attempted = True
            sent = await self.messenger.deliver(messages)

        committed = False
        if not options.test_mode and (sent or not attempted or self.commit_on_delivery_failure):
            await tracker.commit(current)
            committed = True

        result = PollResult(
            success=True,
            action="notified" if attempted else "checked",
            timestamp=now,
            total=len(current),
            new=len(new),
            notification_sent=sent,
            committed=committed,
            detections=current,
            new_detections=new,
        )
        log_event(
            LOGGER,
            "hotspots.poll",
            "Poll complete",
            action=result.action,
            total=result.total,
            new=result.new,
            notification_sent=sent,
            committed=committed,
            force_notify=options.force_notify,
            test_mode=options.test_mode,
            channel=options.channel,
        )
        return result

    async def send_test_message(self) -> bool:
        messages = format_test_messages(
            self.geofences.province.name,
            [region.name for region in self.geofences.districts],
            self.local_now(),
        )
        return await self.messenger.deliver(messages)


def build_monitor(config: HotspotSettings, *, clock: Clock = utc_now) -> HotspotMonitor:
    """Wire a monitor from settings (FIRMS client, LINE messenger, novelty store)."""
    geofences = load_geofence_config(config.regions_path, config.protected_areas_geojson)
    pipeline = HotspotPipeline(
        FirmsFeedClient(
            config.map_key,
            base_url=config.firms_base_url,
            timeout_seconds=config.fetch_timeout_seconds,
        ),
        geofences,
        PassFilter.from_settings(config),
        sources=config.sources,
        lookback_days=config.day_range,
        fetch_timeout_seconds=config.fetch_timeout_seconds,
    )
    if config.novelty_backend == "redis":
        store = RedisNoveltyStore.from_url(config.redis_url)
    else:
        store = InMemoryNoveltyStore()
    tracker = NoveltyTracker(store, suppress_cold_start=config.suppress_cold_start)
    messenger = LineMessenger(
        config.line_channel_access_token,
        config.line_group_id,
        api_url=config.line_api_url,
        timeout_seconds=config.line_timeout_seconds,
    )
    return HotspotMonitor(
        pipeline,
        tracker,
        messenger,
        clock=clock,
        commit_on_delivery_failure=config.commit_on_delivery_failure,
    )


_monitor: HotspotMonitor | None = None


def get_monitor() -> HotspotMonitor:
    """Create (or memoize) the process-wide monitor."""
    global _monitor
    if _monitor is None:
        _monitor = build_monitor(hotspot_settings)
    return _monitor
