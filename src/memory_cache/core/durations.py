from __future__ import annotations

import math
from datetime import timedelta
from typing import Optional, Union

from .errors import ValidationError

Seconds = Union[int, float, timedelta]


def _to_seconds(value: Seconds, *, name: str) -> float:
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number of seconds or a timedelta")
    else:
        try:
            seconds = float(value)
        except OverflowError:
            raise ValidationError(f"{name} is too large") from None

    if math.isnan(seconds):
        raise ValidationError(f"{name} must not be NaN")
    if seconds < 0:
        raise ValidationError(f"{name} must not be negative")
    return seconds


def normalize_ttl(ttl_seconds: Optional[Seconds]) -> Optional[float]:
    # None means the entry never expires
    if ttl_seconds is None:
        return None
    return _to_seconds(ttl_seconds, name="ttl_seconds")


def normalize_scan_frequency(seconds: Optional[Seconds]) -> Optional[float]:
    # None disables the full scan entirely
    if seconds is None:
        return None
    return _to_seconds(seconds, name="full_scan_frequency")
