"""
Data Store — thread-safe telemetry state for the six tank sensors.

current values: shallow per-key merge of every ingested reading.
history:        readings exactly as received, newest first, bounded.
"""
import threading
import datetime
import logging
from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from monitor.config import STORE
from monitor.models.sensor_model import SensorKind, as_number, normalize_key

log = logging.getLogger("data_store")


def normalize_reading(partial: Mapping) -> dict:
    """Rename device aliases to canonical kind names; keep other keys as-is."""
    out = {}
    for key, value in partial.items():
        kind = normalize_key(key)
        out[kind.value if kind is not None else str(key)] = value
    return out


@dataclass(frozen=True)
class Reading:
    """One timestamped reading, stored verbatim (not merged)."""
    ts:      datetime.datetime
    values:  Mapping = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key, default=None):
        return self.values.get(key, default)

    def to_dict(self) -> dict:
        return {
            "ts":     self.ts.isoformat(),
            "values": dict(self.values),
        }


class TelemetryStore:
    """
    Merged current values plus a bounded newest-first history.
    All access goes through one lock so history order matches merge order.
    """

    def __init__(self, capacity: Optional[int] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        self._lock     = threading.RLock()
        self._capacity = capacity if capacity is not None else STORE["history_capacity"]
        if self._capacity < 1:
            raise ValueError(f"history capacity must be >= 1, got {self._capacity}")
        self._clock    = clock
        self._current: dict = {}
        # appendleft + maxlen evicts the oldest entry from the right
        self._history: deque[Reading] = deque(maxlen=self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    # ── Write ─────────────────────────────────────────────────

    def merge(self, partial: Mapping):
        """Overwrite current values per key; keys not in partial are untouched."""
        with self._lock:
            self._current.update(partial)

    def ingest(self, partial: Mapping) -> Reading:
        values = normalize_reading(partial)
        with self._lock:
            self.merge(values)
            reading = Reading(ts=self._clock(), values=values)
            self._history.appendleft(reading)
            size = len(self._history)
        log.debug(f"Ingested {sorted(values)} (history {size}/{self._capacity})")
        return reading

    # ── Read ──────────────────────────────────────────────────

    def current_values(self) -> dict:
        with self._lock:
            return dict(self._current)

    def history(self) -> list[Reading]:
        """Newest first."""
        with self._lock:
            return list(self._history)

    def history_for(self, kind, limit: Optional[int] = None) -> list[float]:
        """Most recent `limit` finite values for one sensor, oldest first."""
        sensor = normalize_key(kind)
        key = sensor.value if sensor is not None else str(kind)
        with self._lock:
            readings = list(self._history)
        points = []
        for r in readings:
            if limit is not None and len(points) >= limit:
                break
            v = as_number(r.get(key))
            if v is not None:
                points.append(v)
        points.reverse()
        return points

    def trends(self, limit: Optional[int] = None) -> dict[str, list[float]]:
        """Return {kind: [points]} for every sensor kind, for sparklines."""
        return {kind.value: self.history_for(kind, limit) for kind in SensorKind}

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)
