"""Alert payloads for new hotspots and their delivery over LINE."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Protocol, Sequence

import httpx

from ingest.logging_utils import log_event
from ingest.models import Detection

LOGGER = logging.getLogger(__name__)
MAX_LISTED_COORDINATES = 10
DETAILS_URL = "https://firms.modaps.eosdis.nasa.gov/map/"
DIVIDER = "━" * 20

Message = Dict[str, Any]


@dataclass(frozen=True)
class HotspotAlert:
    timestamp: datetime
    hotspots: List[Detection] = field(default_factory=list)
    new_count: int = 0
    total_count: int = 0
    districts: List[str] = field(default_factory=list)

    def district_counts(self) -> Dict[str, int]:
        counts = Counter(h.district for h in self.hotspots)
        return {district: counts[district] for district in self.districts if counts[district]}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "new_count": self.new_count,
            "total_count": self.total_count,
            "districts": list(self.districts),
            "district_counts": self.district_counts(),
            "hotspots": [h.to_dict() for h in self.hotspots],
        }


def create_alert(
    new_hotspots: Sequence[Detection],
    all_hotspots: Sequence[Detection],
    now: datetime,
) -> HotspotAlert:
    """Summarize a novelty delta; districts keep first-seen order."""
    districts = list(dict.fromkeys(h.district for h in new_hotspots))
    return HotspotAlert(
        timestamp=now,
        hotspots=list(new_hotspots),
        new_count=len(new_hotspots),
        total_count=len(all_hotspots),
        districts=districts,
    )


def _text(body: str) -> Message:
    return {"type": "text", "text": body}


def _stamp(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y %H:%M")


def format_alert_messages(alert: HotspotAlert, province: str, local_now: datetime) -> List[Message]:
    summary_lines = [f"  • {district}: {count}" for district, count in alert.district_counts().items()]
    summary = "\n".join(
        [
            "🔥 New hotspots detected",
            DIVIDER,
            f"📍 Area: {province}",
            *summary_lines,
            "",
            "🛰️ Source: NASA FIRMS (VIIRS/MODIS)",
            f"📅 Checked at: {_stamp(local_now)}",
            f"🔢 New hotspots: {alert.new_count}",
            f"📊 Total today: {alert.total_count}",
            "",
            f"👉 Details: {DETAILS_URL}",
        ]
    )
    messages = [_text(summary)]

    if 0 < len(alert.hotspots) <= MAX_LISTED_COORDINATES:
        entries = []
        for index, hotspot in enumerate(alert.hotspots, start=1):
            entry = (
                f"{index}. {hotspot.district}\n"
                f"   📍 UTM: {hotspot.grid_reference or 'N/A'}\n"
                f"   📌 Lat,Long: {hotspot.latitude:.4f}, {hotspot.longitude:.4f}"
            )
            if hotspot.protected_area:
                entry += f"\n   🌳 {hotspot.protected_area}"
            entries.append(entry)
        messages.append(_text("📌 Hotspot coordinates:\n\n" + "\n\n".join(entries)))
    return messages


def format_no_hotspot_messages(province: str, local_now: datetime) -> List[Message]:
    return [
        _text(
            "\n".join(
                [
                    "✅ Hotspot check complete",
                    DIVIDER,
                    f"📍 Area: {province}",
                    f"📅 Time: {_stamp(local_now)}",
                    "",
                    "No new hotspots in the area",
                ]
            )
        )
    ]


def format_test_messages(province: str, districts: Sequence[str], local_now: datetime) -> List[Message]:
    return [
        _text(
            "\n".join(
                [
                    "🧪 Hotspot alert test",
                    DIVIDER,
                    f"📅 Time: {_stamp(local_now)}",
                    "",
                    "✅ System is running",
                    f"📍 Monitored area: {province}",
                    f"🏘️ Districts: {', '.join(districts)}",
                ]
            )
        )
    ]


class Messenger(Protocol):
    async def deliver(self, messages: Sequence[Message]) -> bool:
        ...


class LineMessenger:
    """Push messages to a LINE group. A single attempt; never retries."""

    def __init__(
        self,
        access_token: str,
        group_id: str,
        *,
        api_url: str = "https://api.line.me/v2/bot/message/push",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.group_id = group_id
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def deliver(self, messages: Sequence[Message]) -> bool:
        if not self.access_token or not self.group_id:
            log_event(LOGGER, "hotspots.alert", "LINE credentials not configured", level="error")
            return False

        payload = {"to": self.group_id, "messages": list(messages)}
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            log_event(LOGGER, "hotspots.alert", "LINE request failed", level="error", error=str(exc))
            return False

        if response.is_success:
            log_event(LOGGER, "hotspots.alert", "LINE message sent", messages=len(messages))
            return True
        log_event(
            LOGGER,
            "hotspots.alert",
            "LINE API rejected message",
            level="error",
            status_code=response.status_code,
            body=response.text[:500],
        )
        return False
