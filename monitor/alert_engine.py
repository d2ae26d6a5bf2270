"""
Alert Engine — turns ingested readings into a bounded alert log.

Only warn/bad readings raise alerts. Completed flush runs add an info entry.
The log is newest first; the oldest entry is evicted past capacity.
"""
import datetime
import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from monitor.config import ALERTS
from monitor.models.sensor_model import PROFILES, SeverityLevel, evaluate

log = logging.getLogger("alert_engine")

LEVEL_INFO = "info"
ALERTING_LEVELS = (SeverityLevel.WARN, SeverityLevel.BAD)


@dataclass(frozen=True)
class AlertEvent:
    id:          str
    sensor_kind: str
    value:       object
    level:       str
    ts:          datetime.datetime

    def to_dict(self) -> dict:
        return {
            "id":         self.id,
            "sensorKind": self.sensor_kind,
            "value":      self.value,
            "level":      self.level,
            "ts":         self.ts.isoformat(),
        }


class AlertEngine:

    def __init__(self, capacity: Optional[int] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now,
                 profiles=PROFILES):
        self._lock     = threading.RLock()
        self._capacity = capacity if capacity is not None else ALERTS["capacity"]
        if self._capacity < 1:
            raise ValueError(f"alert capacity must be >= 1, got {self._capacity}")
        self._clock    = clock
        self._profiles = profiles
        self._seq      = itertools.count(1)
        self._log: deque[AlertEvent] = deque(maxlen=self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def _make_event(self, kind: str, value, level: str, ts: datetime.datetime) -> AlertEvent:
        # sequence keeps ids unique inside one clock tick
        event_id = f"{kind}-{int(ts.timestamp() * 1000)}-{next(self._seq)}"
        return AlertEvent(id=event_id, sensor_kind=kind, value=value, level=level, ts=ts)

    def _prepend(self, events: list[AlertEvent]):
        # appendleft in reverse keeps the batch in key order at the head
        for event in reversed(events):
            self._log.appendleft(event)

    def on_ingest(self, partial: Mapping) -> list[AlertEvent]:
        """Evaluate each field; return the alerts raised for this reading."""
        with self._lock:
            ts = self._clock()
            events = []
            for key, value in partial.items():
                level = evaluate(key, value, self._profiles)
                if level in ALERTING_LEVELS:
                    events.append(self._make_event(str(key), value, level.value, ts))
            self._prepend(events)
        for e in events:
            log.info(f"Alert {e.level.upper()}: {e.sensor_kind}={e.value}")
        return events

    def record_info(self, label: str, value) -> AlertEvent:
        with self._lock:
            event = self._make_event(label, value, LEVEL_INFO, self._clock())
            self._prepend([event])
        log.info(f"Info: {label} ({value})")
        return event

    def clear(self):
        with self._lock:
            self._log.clear()
        log.info("Alert log cleared")

    def alerts(self) -> list[AlertEvent]:
        """Newest first."""
        with self._lock:
            return list(self._log)

    def __len__(self) -> int:
        with self._lock:
            return len(self._log)
