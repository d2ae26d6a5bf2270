"""
Ingest — periodically pulls readings from the feed into the dashboard.

Runs as an asyncio task with a stop token. Blocking fetches run in a
worker thread so the event loop (and a running flush) never stalls.
A failed fetch is skipped silently; the next poll retries, no backoff.
"""
import asyncio
import logging
from typing import Optional

from monitor.config import FEED
from monitor.dashboard import Dashboard
from monitor.feed import BaseFeed

log = logging.getLogger("ingest")


class PollLoop:

    def __init__(self, feed: BaseFeed, dashboard: Dashboard,
                 interval_ms: Optional[int] = None):
        self._feed      = feed
        self._dashboard = dashboard
        self._interval  = (interval_ms if interval_ms is not None
                           else FEED["poll_interval_ms"]) / 1000.0
        self._stop      = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.polls      = 0
        self.failures   = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> bool:
        """Fetch and ingest one reading. Returns True if something was ingested."""
        self.polls += 1
        try:
            result = await asyncio.to_thread(self._feed.fetch)
        except Exception as e:
            self.failures += 1
            log.debug(f"Poll error: {e}")
            return False

        if not result.success:
            self.failures += 1
            log.debug(f"Poll skipped: {result.error}")
            return False
        if not result.reading:
            return False

        self._dashboard.ingest(result.reading)
        return True

    async def _run(self):
        log.info(f"Polling every {self._interval:.1f}s")
        while not self._stop.is_set():
            await self.poll_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
        log.info("Polling stopped")

    def start(self) -> asyncio.Task:
        """Initialize feed and start the poll task."""
        ok = self._feed.init()
        if not ok:
            log.warning(f"Feed init failed: {self._feed.status()}")
        self._stop.clear()
        self._task = asyncio.get_running_loop().create_task(self._run(), name="poll-loop")
        return self._task

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        self._feed.close()
