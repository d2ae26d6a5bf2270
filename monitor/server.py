"""
Spirulina Monitor Server  —  FastAPI + WebSocket dashboard backend
Serves dashboard state as JSON and pushes live updates to all clients.
Also accepts relay pushes (POST /sensordata) and ingests them directly.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from monitor.config import ACTUATOR, DASHBOARD
from monitor.dashboard import Dashboard
from monitor.feed import BaseFeed
from monitor.ingest import PollLoop
from monitor.models import prefs_model
from monitor.relay import RelayState, build_router, loads_strict

log = logging.getLogger("server")


# ── Connection manager ────────────────────────────────────────
class ConnectionManager:
    """Open dashboard sockets; a failed send drops the socket."""

    def __init__(self):
        self._clients: list[WebSocket] = []

    def __len__(self) -> int:
        return len(self._clients)

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self._clients.append(ws)
        log.info(f"Client connected ({len(self._clients)} open)")

    def disconnect(self, ws: WebSocket):
        if ws in self._clients:
            self._clients.remove(ws)
            log.info(f"Client disconnected ({len(self._clients)} open)")

    async def send(self, ws: WebSocket, msg: dict):
        await ws.send_text(json.dumps(msg))

    async def broadcast(self, msg: dict) -> int:
        """Send msg to every client; return how many received it."""
        text = json.dumps(msg)
        delivered = 0
        for ws in list(self._clients):
            try:
                await ws.send_text(text)
                delivered += 1
            except Exception as e:
                log.debug(f"Dropping client after send error: {e}")
                self.disconnect(ws)
        return delivered


# ── Request bodies ────────────────────────────────────────────
class FlushRequest(BaseModel):
    duration_ms: int = Field(ACTUATOR["default_duration_ms"], ge=0)


class PrefsUpdate(BaseModel):
    dark_mode: Optional[bool] = None
    lang:      Optional[str] = None


def create_app(dashboard: Optional[Dashboard] = None,
               feed: Optional[BaseFeed] = None,
               prefs_path: Optional[str] = None,
               push_interval: Optional[float] = None) -> FastAPI:
    """
    Build the dashboard app. All state lives on app.state and is torn
    down by the lifespan. Without a feed, readings arrive only by push.
    """
    dashboard = dashboard or Dashboard()
    manager   = ConnectionManager()
    interval  = push_interval if push_interval is not None else DASHBOARD["push_interval"]

    def state_msg(lang: str = "en") -> dict:
        return {"type": "state_update", "data": dashboard.snapshot(lang)}

    # ── Background tasks ──────────────────────────────────────
    async def state_push_loop():
        """Push dashboard state to all clients every interval."""
        while True:
            await manager.broadcast(state_msg())
            await asyncio.sleep(interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        poller = PollLoop(feed, dashboard) if feed is not None else None
        if poller:
            poller.start()
        push = asyncio.create_task(state_push_loop())
        app.state.poller = poller
        log.info("Dashboard started")
        yield
        push.cancel()
        if poller:
            await poller.stop()
        # A started flush always completes
        await dashboard.actuator.wait()
        log.info("Dashboard stopped")

    app = FastAPI(title="Spirulina Monitor", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"],
                       allow_methods=["*"], allow_headers=["*"])
    app.state.dashboard = dashboard
    app.state.ws_manager = manager
    app.state.relay     = RelayState()
    app.include_router(build_router(app.state.relay, on_payload=dashboard.ingest))

    # ── REST ──────────────────────────────────────────────────
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/state")
    def get_state(lang: str = "en"):
        return dashboard.snapshot(lang)

    @app.get("/api/alerts")
    def get_alerts():
        return [a.to_dict() for a in dashboard.alerts.alerts()]

    @app.delete("/api/alerts")
    def clear_alerts():
        dashboard.alerts.clear()
        return {"status": "ok"}

    @app.post("/api/flush")
    async def flush(req: Optional[FlushRequest] = None):
        req = req or FlushRequest()
        if not dashboard.actuator.trigger(req.duration_ms):
            return JSONResponse(status_code=409, content={"status": "busy"})
        return JSONResponse(status_code=202, content={"status": "started"})

    @app.get("/api/prefs")
    def get_prefs():
        return prefs_model.load(prefs_path)

    @app.put("/api/prefs")
    def put_prefs(update: PrefsUpdate):
        changes = {k: v for k, v in update.model_dump().items() if v is not None}
        prefs, ok = prefs_model.update(changes, prefs_path)
        return {"success": ok, "prefs": prefs}

    # ── WebSocket endpoint ────────────────────────────────────
    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await manager.connect(ws)
        try:
            # Send initial state immediately on connect
            await manager.send(ws, state_msg())
            while True:
                raw = await ws.receive_text()
                try:
                    msg = loads_strict(raw)
                except ValueError:
                    await manager.send(ws, {"type": "error", "message": "Malformed command"})
                    continue
                await handle_command(ws, msg)
        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(ws)

    # ── Command handler ───────────────────────────────────────
    async def handle_command(ws: WebSocket, msg: dict):
        cmd = msg.get("cmd") if isinstance(msg, dict) else None

        if cmd == "flush":
            try:
                duration = int(msg.get("duration_ms", ACTUATOR["default_duration_ms"]))
            except (TypeError, ValueError, OverflowError):
                await manager.send(ws, {"type": "error", "message": "Bad duration_ms"})
                return
            started = dashboard.actuator.trigger(duration)
            await manager.send(ws, {"type": "cmd_result", "cmd": "flush", "success": started})
            await manager.broadcast(state_msg())

        elif cmd == "clear_alerts":
            dashboard.alerts.clear()
            await manager.broadcast(state_msg())

        elif cmd == "get_state":
            lang = msg.get("lang")
            await manager.send(ws, state_msg(lang if isinstance(lang, str) else "en"))

        elif cmd == "save_prefs":
            prefs, ok = await asyncio.to_thread(prefs_model.update, msg.get("data", {}), prefs_path)
            await manager.send(ws, {"type": "cmd_result", "cmd": "save_prefs",
                                    "success": ok, "prefs": prefs})

        else:
            await manager.send(ws, {"type": "error", "message": f"Unknown command: {cmd!r}"})

    return app
