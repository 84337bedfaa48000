"""Process-wide cache defaults taken from MEMORY_CACHE_* environment variables.

Unset or unparsable variables leave the built-in default in place.
"""

from __future__ import annotations

import math
import os
from typing import Optional


_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").strip().lower()
    if not value:
        return default
    return value in _TRUTHY


def _env_optional_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    if math.isnan(value) or value < 0:
        return default
    return value


# Seconds between full expiration scans for memoized functions; unset = never
DEFAULT_FULL_SCAN_FREQUENCY = _env_optional_float("MEMORY_CACHE_SCAN_FREQUENCY", None)

# Log every sweep at INFO instead of DEBUG
DEBUG_SWEEPS = _env_bool("MEMORY_CACHE_DEBUG", False)
