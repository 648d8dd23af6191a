from __future__ import annotations

import math
from typing import Any, Dict


def clamp_int(v: int, lo: int, hi: int) -> int:
    """Clamp an integer value into the inclusive range [lo, hi]."""
    return lo if v < lo else hi if v > hi else v


def clamp_float(v: float, lo: float, hi: float) -> float:
    """Clamp a float value into the inclusive range [lo, hi]."""
    return lo if v < lo else hi if v > hi else v


def clamp01(v: float) -> float:
    return clamp_float(v, 0.0, 1.0)


def round_half_up(v: float) -> int:
    """Round to the nearest integer, with .5 always going up.

    Python's round() uses banker's rounding, which makes HP tables jump
    between even and odd values depending on the row.
    """
    return int(math.floor(v + 0.5))


def is_finite_number(value: Any) -> bool:
    """True for real ints/floats that are not NaN or infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def as_float(value: Any, default: float) -> float:
    """Parse a config value into a finite float, or return default."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def as_int(value: Any, default: int) -> int:
    """Parse a config value into an int, or return default."""
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def deep_get(d: Dict[str, Any], path: str, default: Any) -> Any:
    """Get a nested value from a dict using a dotted path.

    Args:
        d: Source dictionary.
        path: Dot-separated key path (e.g. "levels.gamble.max_chance").
        default: Value to return if any path segment is missing.

    Returns:
        The found value or default.
    """
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def section(raw: Any, key: str) -> Dict[str, Any]:
    """Return raw[key] if it is a dict, else an empty dict."""
    if not isinstance(raw, dict):
        return {}
    value = raw.get(key, {})
    return value if isinstance(value, dict) else {}
