"""
Lightweight in-memory telemetry collectors for the FastAPI layer.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Literal, Optional, TypedDict

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)

EventKind = Literal["provision", "list_repos", "analytics"]


@dataclass
class TelemetryEvent:
    kind: EventKind
    ok: bool
    duration_ms: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


@dataclass
class OperationStats:
    count: int = 0
    failures: int = 0
    total_duration_ms: float = 0.0
    last_timestamp: Optional[float] = None

    def average_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count else 0.0


@dataclass
class ProvisionStats(OperationStats):
    conflicts: int = 0


class RecentEvent(TypedDict):
    kind: EventKind
    ok: bool
    duration_ms: float
    metadata: Dict[str, Any]
    timestamp: float


class OperationSnapshot(TypedDict):
    count: int
    failures: int
    total_duration_ms: float
    last_timestamp: Optional[float]
    average_duration_ms: float


class ProvisionSnapshot(OperationSnapshot):
    conflicts: int


class TelemetrySnapshot(TypedDict):
    provision: ProvisionSnapshot
    list_repos: OperationSnapshot
    recent_events: List[RecentEvent]


class Telemetry:
    """In-memory stats tracker exposed via the `/telemetry` endpoint."""

    def __init__(self, history_size: int = 50, enabled: Optional[bool] = None) -> None:
        self._lock = threading.Lock()
        self._history: Deque[TelemetryEvent] = deque(maxlen=history_size)
        self._provision = ProvisionStats()
        self._list_repos = OperationStats()
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return settings.telemetry_enabled if self._enabled is None else self._enabled

    def track_if_allowed(self, event: str, properties: Dict[str, Any]) -> None:
        """Record an analytics event; a no-op when telemetry is disabled."""
        if not self.enabled:
            return
        metadata = dict(properties)
        metadata["event"] = event
        with self._lock:
            self._history.appendleft(
                TelemetryEvent(kind="analytics", ok=True, duration_ms=0.0, metadata=metadata)
            )
        log.debug("analytics_event", name=event, properties=properties)

    def record_provision(
        self,
        duration_ms: float,
        ok: bool,
        conflict: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.enabled:
            return
        metadata = dict(metadata or {})
        metadata["conflict"] = conflict
        event = TelemetryEvent(
            kind="provision", ok=ok, duration_ms=duration_ms, metadata=metadata
        )
        with self._lock:
            self._history.appendleft(event)
            self._provision.count += 1
            self._provision.total_duration_ms += duration_ms
            self._provision.last_timestamp = event.timestamp
            if not ok:
                self._provision.failures += 1
            if conflict:
                self._provision.conflicts += 1

    def record_list_repos(
        self, duration_ms: float, ok: bool, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        if not self.enabled:
            return
        event = TelemetryEvent(
            kind="list_repos", ok=ok, duration_ms=duration_ms, metadata=dict(metadata or {})
        )
        with self._lock:
            self._history.appendleft(event)
            self._list_repos.count += 1
            self._list_repos.total_duration_ms += duration_ms
            self._list_repos.last_timestamp = event.timestamp
            if not ok:
                self._list_repos.failures += 1

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            history: List[RecentEvent] = [
                {
                    "kind": event.kind,
                    "ok": event.ok,
                    "duration_ms": event.duration_ms,
                    "metadata": dict(event.metadata),
                    "timestamp": event.timestamp,
                }
                for event in list(self._history)
            ]
            return {
                "provision": {
                    "count": self._provision.count,
                    "failures": self._provision.failures,
                    "conflicts": self._provision.conflicts,
                    "total_duration_ms": self._provision.total_duration_ms,
                    "last_timestamp": self._provision.last_timestamp,
                    "average_duration_ms": self._provision.average_duration_ms(),
                },
                "list_repos": {
                    "count": self._list_repos.count,
                    "failures": self._list_repos.failures,
                    "total_duration_ms": self._list_repos.total_duration_ms,
                    "last_timestamp": self._list_repos.last_timestamp,
                    "average_duration_ms": self._list_repos.average_duration_ms(),
                },
                "recent_events": history,
            }
