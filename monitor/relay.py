"""
Relay — accepts posted sensor payloads and serves the latest snapshot.

POST /sensordata   body: {temp: 31.2, humidity: 60, ...}  (partial allowed)
GET  /sensordata   → {"data": {...}, "receivedAt": <epoch ms | null>}

One in-memory slot, last write wins. No schema check beyond
"a non-empty JSON object".
"""
import json
import logging
import math
import threading
import time
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

log = logging.getLogger("relay")

EMPTY_PAYLOAD     = "Empty payload"
MALFORMED_PAYLOAD = "Malformed payload"


class RelayState:
    """Latest posted snapshot."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._lock        = threading.Lock()
        self._clock       = clock
        self._latest: dict = {}
        self._received_at: Optional[int] = None

    def store(self, payload: dict):
        with self._lock:
            self._latest      = dict(payload)
            self._received_at = int(self._clock() * 1000)

    def snapshot(self) -> dict:
        with self._lock:
            return {"data": dict(self._latest), "receivedAt": self._received_at}


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number: {text}")
    return value


def _reject_constant(name: str):
    raise ValueError(f"non-finite constant: {name}")


def loads_strict(raw):
    """json.loads that refuses NaN, Infinity and floats that overflow to inf."""
    return json.loads(raw, parse_float=_finite_float, parse_constant=_reject_constant)


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400,
                        content={"status": "error", "message": message})


def build_router(state: RelayState,
                 on_payload: Optional[Callable[[dict], object]] = None) -> APIRouter:
    """Relay endpoints. on_payload is called with every accepted payload."""
    router = APIRouter()

    @router.post("/sensordata")
    async def post_sensordata(request: Request):
        raw = await request.body()
        if not raw.strip():
            return _error(EMPTY_PAYLOAD)
        try:
            data = loads_strict(raw)
        except ValueError:
            log.warning("Rejected malformed payload")
            return _error(MALFORMED_PAYLOAD)
        if not data:
            return _error(EMPTY_PAYLOAD)
        if not isinstance(data, dict):
            return _error(MALFORMED_PAYLOAD)

        state.store(data)
        log.info(f"Data received: {data}")
        if on_payload is not None:
            on_payload(data)
        return {"status": "ok"}

    @router.get("/sensordata")
    async def get_sensordata():
        return state.snapshot()

    return router


def create_relay_app(state: Optional[RelayState] = None) -> FastAPI:
    state = state or RelayState()
    app = FastAPI(title="Spirulina Monitor Relay")
    app.add_middleware(CORSMiddleware, allow_origins=["*"],
                       allow_methods=["*"], allow_headers=["*"])
    app.state.relay = state
    app.include_router(build_router(state))
    return app
