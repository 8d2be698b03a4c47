"""Lenient scalar parsers for the loosely typed NanoDLP payloads."""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

_NON_NUMERIC = re.compile(r"[^0-9+\-.]")
_NON_NUMERIC_EXP = re.compile(r"[^0-9+\-.eE]")
_DURATION = re.compile(r"~?(\d{1,2}):(\d{1,2}):(\d{1,2})")
_LETTERS = re.compile(r"[a-z]")


def first_present(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first non-null value among ``keys``."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_float(value: Any) -> float | None:
    """Parse a number, stripping units such as ``24.85°C``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(_NON_NUMERIC.sub("", value))
        except ValueError:
            return None
    return None


def parse_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "t", "yes"):
            return True
        numeric = parse_int(lowered)
        if numeric is not None:
            return numeric != 0
    return False


def parse_duration(value: Any) -> float | None:
    """Seconds from a number, a ``~H:M:S`` string or a numeric string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        trimmed = value.strip()
        match = _DURATION.search(trimmed)
        if match:
            hours, minutes, seconds = (int(part) for part in match.groups())
            return float(hours * 3600 + minutes * 60 + seconds)
        return parse_float(trimmed)
    return None


def parse_volume_ml(value: Any) -> float | None:
    """Resin volume in millilitres, honouring µl / l / ml unit suffixes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    if not text:
        return None
    try:
        parsed = float(_NON_NUMERIC_EXP.sub("", text))
    except ValueError:
        return None
    if "µ" in text or "ul" in text or "microl" in text:
        return parsed / 1000.0
    if "l" in text and "ml" not in text:
        return parsed * 1000.0
    if "ml" in text or "cc" in text or "cm3" in text:
        return parsed
    # Large unitless figures are microlitres.
    if parsed >= 1000.0:
        return parsed / 1000.0
    return parsed


def parse_layer_height_mm(value: Any, *, assume_microns: bool = False) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    source = ""
    if isinstance(value, (int, float)):
        numeric: float | None = float(value)
    else:
        source = str(value)
        numeric = parse_float(source)
    if numeric is None:
        return None
    lowered = source.lower()
    if assume_microns or "µ" in lowered or "micron" in lowered:
        return numeric / 1000.0
    if "mm" in lowered:
        return numeric
    # A bare figure of 10 or more is microns (e.g. 50 for 0.05 mm).
    if not _LETTERS.search(lowered) and numeric >= 10:
        return numeric / 1000.0
    return numeric


def format_hms(seconds: float | None) -> str | None:
    if seconds is None:
        return None
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
