"""
Spirulina Monitor Configuration
All tuneable settings in one place.
"""
import os

# ── Logging ───────────────────────────────────────────────────
LOG_LEVEL = os.getenv("MONITOR_LOG_LEVEL", "INFO").upper()

# ── Relay server ──────────────────────────────────────────────
RELAY = {
    "host":  os.getenv("MONITOR_RELAY_HOST", "0.0.0.0"),
    "port":  int(os.getenv("MONITOR_RELAY_PORT", "5000")),
}

# ── Dashboard server ──────────────────────────────────────────
DASHBOARD = {
    "host":          os.getenv("MONITOR_DASHBOARD_HOST", "0.0.0.0"),
    "port":          int(os.getenv("MONITOR_DASHBOARD_PORT", "8765")),
    "push_interval": 1.0,            # seconds between WebSocket state pushes
    "trend_points":  30,             # sparkline length per sensor
}

# ── Feed (where readings come from) ───────────────────────────
FEED = {
    "kind":             os.getenv("MONITOR_FEED", "sim"),    # "http" | "sim"
    "poll_interval_ms": int(os.getenv("MONITOR_POLL_MS", "5000")),
    "http": {
        "endpoint": os.getenv("MONITOR_RELAY_URL",
                              "http://localhost:5000/sensordata"),
        "timeout":  10,
        "headers":  {"Accept": "application/json"},
    },
    "sim": {
        "jitter": 0.05,              # fraction of each base value
    },
}

# ── Telemetry store ───────────────────────────────────────────
STORE = {
    "history_capacity": int(os.getenv("MONITOR_HISTORY_CAPACITY", "30")),
}

# ── Alerts ────────────────────────────────────────────────────
ALERTS = {
    "capacity": 100,
}

# ── Flush actuator ────────────────────────────────────────────
ACTUATOR = {
    "cap_ms":              6000,     # longest hold ever applied
    "default_duration_ms": 5000,
}

# ── UI preferences ────────────────────────────────────────────
PREFS = {
    "path":      os.getenv("MONITOR_PREFS_PATH",
                           os.path.join(os.path.expanduser("~"),
                                        ".spirulina-monitor", "prefs.json")),
    "languages": ("en", "hi"),
}
