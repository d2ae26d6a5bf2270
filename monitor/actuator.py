"""
Flush actuator — manual pump run modelled as a single-flight timed hold.

Idle → Running → Idle. A trigger while Running is ignored.
The hold runs as an asyncio task so polling and the API keep going.
There is no cancel: once started a run always completes.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from monitor.alert_engine import AlertEngine
from monitor.config import ACTUATOR

log = logging.getLogger("actuator")

FLUSH_COMPLETED = "Flush Completed"


class ActuatorController:

    def __init__(self, alerts: AlertEngine, cap_ms: Optional[int] = None,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep):
        self._alerts       = alerts
        self._cap_ms       = cap_ms if cap_ms is not None else ACTUATOR["cap_ms"]
        self._sleep        = sleep
        self._running      = False
        self._requested_ms: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cap_ms(self) -> int:
        return self._cap_ms

    def hold_ms(self, duration_ms: int) -> int:
        """Time actually held for a requested duration."""
        return max(0, min(int(duration_ms), self._cap_ms))

    def trigger(self, duration_ms: int) -> bool:
        """
        Start a flush. Returns False (and does nothing) if one is running.
        Must be called from inside the event loop.
        """
        if self._running:
            log.info(f"Flush already running, ignoring request for {duration_ms}ms")
            return False
        loop = asyncio.get_running_loop()
        self._running      = True
        self._requested_ms = int(duration_ms)
        self._task = loop.create_task(self._run(self._requested_ms), name="flush")
        log.info(f"Flush started: requested {duration_ms}ms, "
                 f"holding {self.hold_ms(duration_ms)}ms")
        return True

    async def _run(self, requested_ms: int):
        try:
            await self._sleep(self.hold_ms(requested_ms) / 1000.0)
        finally:
            self._running = False
            self._requested_ms = None
        # Logs the requested duration, not the clamped hold
        self._alerts.record_info(FLUSH_COMPLETED, requested_ms)
        log.info("Flush completed")

    async def wait(self):
        """Wait for the active run (if any) to finish."""
        if self._task is not None:
            await self._task

    def status(self) -> dict:
        return {
            "running":        self._running,
            "requested_ms":   self._requested_ms,
            "cap_ms":         self._cap_ms,
        }
