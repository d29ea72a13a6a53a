"""Small numeric and calendar helpers shared across the engine."""

import math
from datetime import date, datetime, timedelta
from typing import Union


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Python's built-in round() uses banker's rounding (round(62.5) == 62);
    all engine scores round .5 up.
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def week_start(moment: Union[datetime, date]) -> date:
    """Return the most recent Sunday on or before the given date."""
    day = moment.date() if isinstance(moment, datetime) else moment
    # weekday(): Monday == 0 ... Sunday == 6
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def format_pace(seconds_per_km: float) -> str:
    """Format a pace in seconds/km as M:SS."""
    total = round_half_up(seconds_per_km)
    minutes, seconds = divmod(total, 60)
    return f"{minutes}:{seconds:02d}"


def format_number(value: float) -> str:
    """Render integral floats without a trailing '.0' (10000.0 -> '10000')."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def is_number(value) -> bool:
    """True for int/float values; bools are rejected."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)
