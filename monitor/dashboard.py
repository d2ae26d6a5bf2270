"""
Dashboard — owns the telemetry store, alert engine and flush actuator.

Every reading, polled or pushed, goes through ingest() under one lock so
history order and alert order always match arrival order.
"""
import logging
import threading
from typing import Mapping, Optional

from monitor.actuator import ActuatorController
from monitor.alert_engine import AlertEngine, AlertEvent
from monitor.config import DASHBOARD
from monitor.data_store import TelemetryStore
from monitor.models.sensor_model import PROFILES, statuses

log = logging.getLogger("dashboard")


class Dashboard:

    def __init__(self, store: Optional[TelemetryStore] = None,
                 alerts: Optional[AlertEngine] = None,
                 actuator: Optional[ActuatorController] = None,
                 trend_points: Optional[int] = None):
        self._lock    = threading.RLock()
        self.store    = store if store is not None else TelemetryStore()
        self.alerts   = alerts if alerts is not None else AlertEngine()
        self.actuator = actuator if actuator is not None else ActuatorController(self.alerts)
        self.trend_points = trend_points if trend_points is not None else DASHBOARD["trend_points"]

    def ingest(self, partial: Mapping) -> list[AlertEvent]:
        """Apply one reading; return the alerts it raised."""
        with self._lock:
            reading = self.store.ingest(partial)
            return self.alerts.on_ingest(reading.values)

    def snapshot(self, lang: str = "en") -> dict:
        """Everything the UI renders, as plain JSON-able data."""
        with self._lock:
            current = self.store.current_values()
            return {
                "values":   current,
                "statuses": statuses(current),
                "trends":   self.store.trends(self.trend_points),
                "sensors":  [p.to_dict(lang) for p in PROFILES.values()],
                "alerts":   [a.to_dict() for a in self.alerts.alerts()],
                "flush":    self.actuator.status(),
            }
