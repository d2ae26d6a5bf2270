"""
Sensor Model
Static profiles for the six tank sensors and the status evaluator.

evaluate() is a strict first match: good → warn → bad → unknown.
Ranges are inclusive and may overlap or leave gaps.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union


class SensorKind(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY    = "humidity"
    AIR_QUALITY = "air_quality"
    GREEN_INDEX = "green_index"
    LIGHT       = "light"
    PH_LEVEL    = "ph_level"


class SeverityLevel(str, Enum):
    UNKNOWN = "unknown"
    GOOD    = "good"
    WARN    = "warn"
    BAD     = "bad"


@dataclass(frozen=True)
class SensorProfile:
    """Display + threshold profile for one sensor kind."""
    kind:   SensorKind
    label:  str
    unit:   str
    color:  str
    good:   tuple[float, float]
    warn:   tuple[float, float]
    bad:    tuple[float, float]

    def to_dict(self, lang: str = "en") -> dict:
        return {
            "kind":  self.kind.value,
            "label": LABELS.get(self.kind, {}).get(lang, self.label),
            "unit":  self.unit,
            "color": self.color,
            "good":  list(self.good),
            "warn":  list(self.warn),
            "bad":   list(self.bad),
        }


PROFILES: dict[SensorKind, SensorProfile] = {
    SensorKind.TEMPERATURE: SensorProfile(
        SensorKind.TEMPERATURE, "Temperature", "°C", "#06b6d4",
        good=(30, 35), warn=(35, 38), bad=(38, 999)),
    SensorKind.HUMIDITY: SensorProfile(
        SensorKind.HUMIDITY, "Humidity", "%", "#60a5fa",
        good=(50, 75), warn=(40, 50), bad=(0, 40)),
    SensorKind.AIR_QUALITY: SensorProfile(
        SensorKind.AIR_QUALITY, "Air Quality", "", "#fb923c",
        good=(0, 200), warn=(200, 400), bad=(400, 9999)),
    SensorKind.GREEN_INDEX: SensorProfile(
        SensorKind.GREEN_INDEX, "Green Index", "", "#34d399",
        good=(800, 5000), warn=(400, 800), bad=(0, 400)),
    SensorKind.LIGHT: SensorProfile(
        SensorKind.LIGHT, "Light", "lx", "#a78bfa",
        good=(200, 2000), warn=(100, 200), bad=(0, 100)),
    SensorKind.PH_LEVEL: SensorProfile(
        SensorKind.PH_LEVEL, "pH Level", "", "#f472b6",
        good=(7, 8.5), warn=(6.5, 7), bad=(0, 6.5)),
}

# Display labels per UI language
LABELS = {
    SensorKind.TEMPERATURE: {"en": "Temperature", "hi": "तापमान"},
    SensorKind.HUMIDITY:    {"en": "Humidity",    "hi": "नमी"},
    SensorKind.AIR_QUALITY: {"en": "Air Quality", "hi": "वायु गुणवत्ता"},
    SensorKind.GREEN_INDEX: {"en": "Green Index", "hi": "हरित सूचकांक"},
    SensorKind.LIGHT:       {"en": "Light",       "hi": "प्रकाश"},
    SensorKind.PH_LEVEL:    {"en": "pH Level",    "hi": "पीएच स्तर"},
}

# Short keys posted by the tank hardware
DEVICE_ALIASES = {
    "temp":      SensorKind.TEMPERATURE,
    "humidity":  SensorKind.HUMIDITY,
    "mq135":     SensorKind.AIR_QUALITY,
    "tcs_green": SensorKind.GREEN_INDEX,
    "lux":       SensorKind.LIGHT,
    "ph":        SensorKind.PH_LEVEL,
}


def normalize_key(key) -> Optional[SensorKind]:
    """Map a canonical name or device alias to a SensorKind, else None."""
    if isinstance(key, SensorKind):
        return key
    if not isinstance(key, str):
        return None
    if key in DEVICE_ALIASES:
        return DEVICE_ALIASES[key]
    try:
        return SensorKind(key)
    except ValueError:
        return None


def as_number(value) -> Optional[float]:
    """Return value as a finite float, or None if it is not one."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def _in_range(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def evaluate(kind: Union[SensorKind, str], value,
             profiles: Mapping[SensorKind, SensorProfile] = PROFILES) -> SeverityLevel:
    sensor = normalize_key(kind)
    profile = profiles.get(sensor) if sensor is not None else None
    number = as_number(value)
    if profile is None or number is None:
        return SeverityLevel.UNKNOWN

    if _in_range(number, profile.good):
        return SeverityLevel.GOOD
    if _in_range(number, profile.warn):
        return SeverityLevel.WARN
    if _in_range(number, profile.bad):
        return SeverityLevel.BAD
    return SeverityLevel.UNKNOWN


def statuses(values: Mapping, profiles: Mapping[SensorKind, SensorProfile] = PROFILES) -> dict:
    """Return {kind: level} for every profiled sensor (unknown when missing)."""
    return {
        kind.value: evaluate(kind, values.get(kind.value), profiles).value
        for kind in profiles
    }
