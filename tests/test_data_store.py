import datetime
import logging

import pytest

from monitor.data_store import Reading, TelemetryStore


def _clock():
    t = datetime.datetime(2025, 1, 1, 12, 0, 0)
    step = datetime.timedelta(seconds=5)
    state = {"t": t}

    def now():
        state["t"] += step
        return state["t"]
    return now


def test_current_values_is_merge_of_partials():
    store = TelemetryStore(capacity=10)
    store.ingest({"temperature": 31, "humidity": 60})
    store.ingest({"temperature": 33})
    store.ingest({"ph_level": 7.5})
    assert store.current_values() == {"temperature": 33, "humidity": 60, "ph_level": 7.5}


def test_history_records_partial_not_merged_state():
    store = TelemetryStore(capacity=10)
    store.ingest({"temperature": 31, "humidity": 60})
    store.ingest({"temperature": 33})
    newest = store.history()[0]
    assert dict(newest.values) == {"temperature": 33}


def test_history_is_newest_first_and_bounded():
    store = TelemetryStore(capacity=3, clock=_clock())
    for i in range(5):
        store.ingest({"light": i})
    hist = store.history()
    assert len(hist) == 3
    assert [r.get("light") for r in hist] == [4, 3, 2]
    assert hist[0].ts > hist[1].ts


def test_aliases_are_normalized():
    store = TelemetryStore(capacity=5)
    store.ingest({"temp": 30, "mq135": 120, "extra": 1})
    assert store.current_values() == {"temperature": 30, "air_quality": 120, "extra": 1}


def test_history_for_oldest_first_and_filters():
    store = TelemetryStore(capacity=10)
    store.ingest({"temperature": 30})
    store.ingest({"humidity": 55})
    store.ingest({"temperature": float("nan")})
    store.ingest({"temperature": "hot"})
    store.ingest({"temperature": 32})
    store.ingest({"temperature": 34})
    assert store.history_for("temperature") == [30.0, 32.0, 34.0]
    assert store.history_for("temp", limit=2) == [32.0, 34.0]
    assert store.history_for("temperature", limit=0) == []
    assert store.history_for("light") == []


def test_trends_has_every_kind():
    store = TelemetryStore(capacity=5)
    store.ingest({"light": 300})
    trends = store.trends()
    assert trends["light"] == [300.0]
    assert len(trends) == 6


def test_reading_is_immutable():
    store = TelemetryStore(capacity=5)
    src = {"temperature": 31}
    reading = store.ingest(src)
    src["temperature"] = 99
    assert reading.get("temperature") == 31
    with pytest.raises(TypeError):
        reading.values["temperature"] = 1
    assert isinstance(reading, Reading)


def test_bad_capacity():
    with pytest.raises(ValueError):
        TelemetryStore(capacity=0)


def test_ingest_logs_history_size(caplog):
    store = TelemetryStore(capacity=2)
    with caplog.at_level(logging.DEBUG, logger="data_store"):
        for i in range(3):
            store.ingest({"light": i})
    sizes = [r.getMessage().split("history ")[1] for r in caplog.records]
    assert sizes == ["1/2)", "2/2)", "2/2)"]
