"""
Simulated feed — used when no live relay is configured.
Each sensor follows a slow sine around its base value plus bounded jitter,
with swings wide enough to drift into the warn band now and then.
"""
import logging
import math
import random
import datetime
import time
from typing import Callable, Optional

from monitor.feed.base import BaseFeed, FetchResult
from monitor.models.sensor_model import SensorKind

log = logging.getLogger("sim_feed")

# kind -> (base, amplitude, period_s, decimals)
WAVES = {
    SensorKind.TEMPERATURE: (33.0,   3.5,  600.0, 2),
    SensorKind.HUMIDITY:    (60.0,  14.0,  900.0, 1),
    SensorKind.AIR_QUALITY: (180.0, 90.0,  420.0, 0),
    SensorKind.GREEN_INDEX: (1400.0, 700.0, 1800.0, 0),
    SensorKind.LIGHT:       (700.0, 600.0, 1200.0, 0),
    SensorKind.PH_LEVEL:    (7.6,    0.8,  1500.0, 2),
}


def wave_value(kind: SensorKind, t: float) -> float:
    """Deterministic part of the simulated signal at time t (seconds)."""
    base, amp, period, _ = WAVES[kind]
    return base + amp * math.sin(2 * math.pi * t / period)


class SimFeed(BaseFeed):

    def __init__(self, cfg: dict, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        super().__init__(cfg)
        self._rng   = rng or random.Random()
        self._clock = clock

    def init(self) -> bool:
        log.info("Feed: simulation mode")
        self._connected = True
        return True

    def sample(self, t: float) -> dict:
        jitter = self._cfg.get("jitter", 0.05)
        out = {}
        for kind, (base, _, _, decimals) in WAVES.items():
            noise = self._rng.uniform(-jitter, jitter) * base
            value = max(0.0, wave_value(kind, t) + noise)
            out[kind.value] = round(value, decimals)
        return out

    def fetch(self) -> FetchResult:
        self._last_fetch = datetime.datetime.now()
        return FetchResult(success=True, reading=self.sample(self._clock()))

    def close(self):
        self._connected = False
