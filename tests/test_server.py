import asyncio

from fastapi.testclient import TestClient

from monitor.actuator import ActuatorController
from monitor.alert_engine import AlertEngine
from monitor.dashboard import Dashboard
from monitor.server import ConnectionManager, create_app


def _app(tmp_path, hold=0.05):
    alerts = AlertEngine()
    actuator = ActuatorController(alerts, cap_ms=6000, sleep=lambda s: asyncio.sleep(hold))
    dashboard = Dashboard(alerts=alerts, actuator=actuator)
    app = create_app(dashboard=dashboard, prefs_path=str(tmp_path / "prefs.json"),
                     push_interval=0.05)
    return app, dashboard


def test_health_and_state(tmp_path):
    app, _ = _app(tmp_path)
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        state = client.get("/api/state").json()
        assert state["values"] == {}
        assert state["alerts"] == []


def test_pushed_payload_is_ingested(tmp_path):
    app, dashboard = _app(tmp_path)
    with TestClient(app) as client:
        res = client.post("/sensordata", json={"temp": 40, "humidity": 60})
        assert res.status_code == 200
        state = client.get("/api/state").json()
        assert state["values"] == {"temperature": 40, "humidity": 60}
        assert [a["level"] for a in state["alerts"]] == ["bad"]
        assert client.get("/sensordata").json()["data"] == {"temp": 40, "humidity": 60}


def test_empty_push_leaves_state_unchanged(tmp_path):
    app, dashboard = _app(tmp_path)
    with TestClient(app) as client:
        res = client.post("/sensordata", json={})
        assert res.status_code == 400
        assert res.json() == {"status": "error", "message": "Empty payload"}
    assert dashboard.store.current_values() == {}
    assert len(dashboard.store) == 0
    assert len(dashboard.alerts) == 0


def test_clear_alerts(tmp_path):
    app, dashboard = _app(tmp_path)
    with TestClient(app) as client:
        client.post("/sensordata", json={"ph": 6.0})
        assert len(client.get("/api/alerts").json()) == 1
        assert client.delete("/api/alerts").status_code == 200
        assert client.get("/api/alerts").json() == []


def test_flush_single_flight(tmp_path):
    app, dashboard = _app(tmp_path, hold=0.2)
    with TestClient(app) as client:
        first = client.post("/api/flush", json={"duration_ms": 10000})
        second = client.post("/api/flush", json={"duration_ms": 10000})
        assert first.status_code == 202
        assert second.status_code == 409
        assert client.get("/api/state").json()["flush"]["running"] is True
    # lifespan shutdown waits for the run to finish
    events = dashboard.alerts.alerts()
    assert [(e.sensor_kind, e.value) for e in events] == [("Flush Completed", 10000)]


def test_flush_rejects_negative_duration(tmp_path):
    app, _ = _app(tmp_path)
    with TestClient(app) as client:
        assert client.post("/api/flush", json={"duration_ms": -1}).status_code == 422


def test_prefs(tmp_path):
    app, _ = _app(tmp_path)
    with TestClient(app) as client:
        assert client.get("/api/prefs").json() == {"dark_mode": False, "lang": "en"}
        res = client.put("/api/prefs", json={"dark_mode": True})
        assert res.json() == {"success": True, "prefs": {"dark_mode": True, "lang": "en"}}
        assert client.get("/api/prefs").json()["dark_mode"] is True


def test_websocket_initial_state_and_commands(tmp_path):
    app, dashboard = _app(tmp_path)
    with TestClient(app) as client:
        client.post("/sensordata", json={"lux": 50})
        with client.websocket_connect("/ws") as ws:
            first = ws.receive_json()
            assert first["type"] == "state_update"
            assert first["data"]["values"] == {"light": 50}

            ws.send_json({"cmd": "save_prefs", "data": {"lang": "hi"}})
            msg = ws.receive_json()
            while msg["type"] != "cmd_result":
                msg = ws.receive_json()
            assert msg["prefs"]["lang"] == "hi"

            ws.send_json({"cmd": "bogus"})
            msg = ws.receive_json()
            while msg["type"] != "error":
                msg = ws.receive_json()
            assert "bogus" in msg["message"]

            ws.send_text('{"cmd": "flush", "duration_ms": 1e400}')
            msg = ws.receive_json()
            while msg["type"] != "error":
                msg = ws.receive_json()
            assert msg["message"] == "Malformed command"

            ws.send_json({"cmd": "flush", "duration_ms": "soon"})
            msg = ws.receive_json()
            while msg["type"] != "error":
                msg = ws.receive_json()
            assert msg["message"] == "Bad duration_ms"

            # socket still serves commands after bad input
            ws.send_json({"cmd": "get_state", "lang": "hi"})
            msg = ws.receive_json()
            while msg["type"] != "state_update" or msg["data"]["sensors"][0]["label"] != "तापमान":
                msg = ws.receive_json()
            assert not dashboard.actuator.running


def test_non_finite_push_rejected(tmp_path):
    app, dashboard = _app(tmp_path)
    with TestClient(app) as client:
        client.post("/sensordata", json={"temp": 31})
        for body in (b'{"temp": 1e400}', b'{"co2": -1e999}', b'{"ph": NaN}', b'{"lux": Infinity}'):
            res = client.post("/sensordata", content=body,
                              headers={"Content-Type": "application/json"})
            assert res.status_code == 400
            assert res.json() == {"status": "error", "message": "Malformed payload"}
        assert client.get("/api/state").status_code == 200
        assert client.get("/sensordata").json()["data"] == {"temp": 31}
    assert dashboard.store.current_values() == {"temperature": 31}
    assert len(dashboard.store) == 1


def test_state_labels_follow_lang(tmp_path):
    app, _ = _app(tmp_path)
    with TestClient(app) as client:
        en = client.get("/api/state").json()["sensors"]
        hi = client.get("/api/state", params={"lang": "hi"}).json()["sensors"]
        fr = client.get("/api/state", params={"lang": "fr"}).json()["sensors"]
    assert en[0]["label"] == "Temperature"
    assert hi[0]["label"] == "तापमान"
    assert fr[0]["label"] == "Temperature"


def test_websocket_client_removed_on_close(tmp_path):
    app, _ = _app(tmp_path)
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            assert len(app.state.ws_manager) == 1
            ws.send_text('{"cmd": "flush", "duration_ms": 1e400}')
            ws.receive_json()
    assert len(app.state.ws_manager) == 0


class BrokenSocket:
    async def accept(self):
        pass

    async def send_text(self, text):
        raise RuntimeError("socket closed")


class OpenSocket(BrokenSocket):
    def __init__(self):
        self.sent = []

    async def send_text(self, text):
        self.sent.append(text)


def test_broadcast_drops_failed_clients():
    manager = ConnectionManager()
    good, bad = OpenSocket(), BrokenSocket()

    async def scenario():
        await manager.connect(good)
        await manager.connect(bad)
        return await manager.broadcast({"type": "ping"})

    assert asyncio.run(scenario()) == 1
    assert len(manager) == 1
    assert good.sent == ['{"type": "ping"}']
    manager.disconnect(bad)
    assert len(manager) == 1
