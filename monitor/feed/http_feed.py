"""
HTTP relay feed.
Polls the relay's latest snapshot as JSON.

GET /sensordata
Response: { "data": {temp, humidity, ...}, "receivedAt": <epoch ms | null> }

A snapshot whose receivedAt is null or already seen is skipped.
Any failure is reported in the result; the next poll retries.
"""
import logging
import datetime
import urllib.request
import urllib.error

from monitor.feed.base import BaseFeed, FetchResult
from monitor.relay import loads_strict

log = logging.getLogger("http_feed")


class HttpFeed(BaseFeed):

    def __init__(self, cfg: dict):
        super().__init__(cfg)
        self._last_received_at = None

    def init(self) -> bool:
        endpoint = self._cfg.get("endpoint", "")
        if not endpoint:
            self._last_error = "No endpoint configured"
            log.warning("HTTP feed: no endpoint configured")
            return False
        log.info(f"HTTP feed ready ← {endpoint}")
        self._connected = True
        return True

    def _get(self, endpoint: str, timeout: float, headers: dict) -> dict:
        req = urllib.request.Request(url=endpoint, method="GET", headers=headers)
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            if resp.status != 200:
                raise urllib.error.HTTPError(endpoint, resp.status,
                                             f"HTTP {resp.status}", resp.headers, None)
            return loads_strict(resp.read().decode("utf-8"))

    def fetch(self) -> FetchResult:
        endpoint = self._cfg.get("endpoint", "")
        timeout  = self._cfg.get("timeout", 10)
        headers  = self._cfg.get("headers", {})

        try:
            body = self._get(endpoint, timeout, headers)
        except urllib.error.HTTPError as e:
            return self._failed(f"HTTP {e.code}")
        except urllib.error.URLError as e:
            return self._failed(str(e.reason))
        except Exception as e:
            return self._failed(str(e))

        self._connected  = True
        self._last_fetch = datetime.datetime.now()
        self._last_error = None

        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            return self._failed("Unexpected response shape")

        received_at = body.get("receivedAt")
        if received_at is None or received_at == self._last_received_at:
            log.debug("No new snapshot on relay")
            return FetchResult(success=True)

        self._last_received_at = received_at
        return FetchResult(success=True, reading=body["data"])

    def _failed(self, err: str) -> FetchResult:
        self._connected  = False
        self._last_error = err
        log.debug(f"Fetch failed: {err}")
        return FetchResult(success=False, error=err)

    def close(self):
        self._connected = False
        log.info("HTTP feed closed")
