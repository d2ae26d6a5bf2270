"""
Prefs Model — load/save UI preferences (dark mode, language) as JSON.
Missing or corrupt data falls back to defaults field by field.
"""
import json
import logging
import os
from typing import Optional

from monitor.config import PREFS

log = logging.getLogger("prefs_model")

DEFAULT = {
    "dark_mode": False,
    "lang":      "en",
}


def _path(path: Optional[str]) -> str:
    return path or PREFS["path"]


def sanitize(data) -> dict:
    """Keep valid fields, fill the rest from DEFAULT."""
    out = dict(DEFAULT)
    if not isinstance(data, dict):
        return out
    if isinstance(data.get("dark_mode"), bool):
        out["dark_mode"] = data["dark_mode"]
    if data.get("lang") in PREFS["languages"]:
        out["lang"] = data["lang"]
    return out


def load(path: Optional[str] = None) -> dict:
    try:
        with open(_path(path), encoding="utf-8") as f:
            return sanitize(json.load(f))
    except FileNotFoundError:
        return dict(DEFAULT)
    except (OSError, ValueError) as e:
        log.warning(f"Prefs unreadable, using defaults: {e}")
        return dict(DEFAULT)


def save(prefs: dict, path: Optional[str] = None) -> bool:
    target = _path(path)
    tmp = target + ".tmp"
    try:
        os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(sanitize(prefs), f, indent=2)
        os.replace(tmp, target)
        return True
    except OSError as e:
        log.warning(f"Prefs save failed: {e}")
        return False


def update(changes: dict, path: Optional[str] = None) -> tuple[dict, bool]:
    """Merge changes onto the stored prefs and save. Returns (prefs, saved)."""
    prefs = load(path)
    if isinstance(changes, dict):
        prefs.update(changes)
    prefs = sanitize(prefs)
    return prefs, save(prefs, path)
