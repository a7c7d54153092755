"""Tracking which detections are new since the previous poll."""

from __future__ import annotations

import json
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Protocol, Set

from redis.asyncio import Redis

from ingest.logging_utils import log_event
from ingest.models import Detection

LOGGER = logging.getLogger(__name__)
DEFAULT_NAMESPACE = "alerts"
DASHBOARD_NAMESPACE = "dashboard"

COLD = "cold"
WARM = "warm"


class NoveltyStore(Protocol):
    """Key-value home for the previous poll's id set.

    ``get`` returns ``None`` when ``namespace`` has never been written, which
    is how a tracker tells a cold start from a poll that found nothing.
    """

    async def get(self, namespace: str) -> Optional[Set[str]]:
        ...

    async def put(self, namespace: str, ids: Set[str]) -> None:
        ...


class InMemoryNoveltyStore:
    """Process-lifetime store; state is lost on restart."""

    def __init__(self) -> None:
        self._data: Dict[str, FrozenSet[str]] = {}

    async def get(self, namespace: str) -> Optional[Set[str]]:
        ids = self._data.get(namespace)
        return set(ids) if ids is not None else None

    async def put(self, namespace: str, ids: Set[str]) -> None:
        self._data[namespace] = frozenset(ids)


class RedisNoveltyStore:
    """Durable store keeping each namespace as a JSON list under one key.

    Uses the asyncio client so store round-trips never block the event loop
    serving the API.
    """

    key_prefix = "hotspots:known_ids:"

    def __init__(self, client: Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisNoveltyStore":
        return cls(Redis.from_url(url))

    async def get(self, namespace: str) -> Optional[Set[str]]:
        raw = await self.client.get(self.key_prefix + namespace)
        if raw is None:
            return None
        return set(json.loads(raw))

    async def put(self, namespace: str, ids: Set[str]) -> None:
        await self.client.set(self.key_prefix + namespace, json.dumps(sorted(ids)))


class NoveltyTracker:
    """Diff each poll against the id set of the last committed poll.

    ``commit`` replaces the known set rather than merging into it, so an id
    missing from one poll is forgotten and would count as new again later.
    With ``suppress_cold_start`` the first diff after startup reports nothing,
    which turns the first poll into a priming run instead of an alert storm.
    Trackers sharing a store stay independent as long as their namespaces
    differ.
    """

    def __init__(
        self,
        store: NoveltyStore,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        suppress_cold_start: bool = False,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self.suppress_cold_start = suppress_cold_start

    async def known_ids(self) -> Optional[Set[str]]:
        return await self.store.get(self.namespace)

    async def state(self) -> str:
        return COLD if await self.known_ids() is None else WARM

    async def diff(self, current: Iterable[Detection]) -> List[Detection]:
        current = list(current)
        known = await self.known_ids()
        if known is None:
            if self.suppress_cold_start:
                log_event(
                    LOGGER,
                    "hotspots.novelty",
                    "Cold start; treating poll as priming run",
                    namespace=self.namespace,
                    current=len(current),
                )
                return []
            return current
        return [detection for detection in current if detection.id not in known]

    async def commit(self, current: Iterable[Detection]) -> None:
        ids = {detection.id for detection in current}
        await self.store.put(self.namespace, ids)
        log_event(LOGGER, "hotspots.novelty", "Committed known ids", namespace=self.namespace, count=len(ids))
