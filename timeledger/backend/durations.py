"""Duration parsing/formatting and wall-clock arithmetic for time entries.

Durations are integer minutes. Wall-clock values are "HH:MM" 24-hour strings
with no date or timezone attached; arithmetic on them wraps silently past
midnight and never records a day shift.
"""

from __future__ import annotations

import math
import re

MINUTES_PER_DAY = 24 * 60

# First match wins; order matters.
_DECIMAL_HOURS = re.compile(r"(\d+\.\d*)\s*h?|(\d+)\s*h")
_HOURS_MINUTES = re.compile(r"(\d+)\s*h\s*(\d+)\s*m?")
_HOURS_ONLY = re.compile(r"(\d+)\s*h")
_MINUTES_ONLY = re.compile(r"(\d+)\s*(?:m|min|minutes?)")
_COLON = re.compile(r"(\d+):(\d+)")
_PLAIN = re.compile(r"(\d+)")

_CLOCK = re.compile(r"(\d{1,2}):(\d{2})")


def parse_duration(text: str | None) -> int | None:
    """Normalize free-form duration input to minutes.

    Supported (first match wins):
    - Decimal hours: "2.5", "2.5h" -> 150.
    - Hours and minutes: "2h 30m", "2h30m", "2h 30" -> 150.
    - Hours only: "2h" -> 120.
    - Minutes with a unit: "90m", "90 min", "90 minutes" -> 90.
    - Colon: "1:30" -> 90 (the minutes part is not range checked, "1:99" -> 159).
    - Plain integer minutes: "150" -> 150.

    Returns None for empty or unrecognized input.
    """
    if not text or not isinstance(text, str):
        return None
    s = text.strip().lower()

    m = _DECIMAL_HOURS.fullmatch(s)
    if m:
        scaled = float(m.group(1) or m.group(2)) * 60 + 0.5
        if not math.isfinite(scaled):
            return None
        # Half-up rounding, not banker's rounding.
        return int(math.floor(scaled))

    m = _HOURS_MINUTES.fullmatch(s)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _HOURS_ONLY.fullmatch(s)
    if m:
        return int(m.group(1)) * 60

    m = _MINUTES_ONLY.fullmatch(s)
    if m:
        return int(m.group(1))

    m = _COLON.fullmatch(s)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _PLAIN.fullmatch(s)
    if m:
        return int(m.group(1))

    return None


def format_duration(minutes: int) -> str:
    """Render minutes as "0h", "2h", "45m" or "2h 30m"."""
    if minutes == 0:
        return "0h"
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_decimal_hours(minutes: int) -> str:
    """Minutes as decimal hours with exactly two places ("1.50")."""
    return f"{minutes / 60:.2f}"


def parse_clock(value: str, *, label: str = "time") -> int:
    """Parse "HH:MM" into minutes since midnight.

    Raises ValueError for malformed strings or out-of-range hours/minutes.
    """
    if not value or not isinstance(value, str):
        raise ValueError(f"{label.capitalize()} must be a non-empty string")
    m = _CLOCK.fullmatch(value.strip())
    if not m:
        raise ValueError(f'Invalid {label} format: "{value}". Expected HH:MM format (e.g., "14:30")')
    hours, mins = int(m.group(1)), int(m.group(2))
    if hours > 23 or mins > 59:
        raise ValueError(
            f"Invalid {label} values: hours must be 0-23, minutes must be 0-59. Got {hours}:{mins}"
        )
    return hours * 60 + mins


def format_clock(total_minutes: int) -> str:
    """Minutes since midnight to zero-padded "HH:MM", wrapping at 24h."""
    total = total_minutes % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def is_clock(value: str | None) -> bool:
    """True when value is a valid "HH:MM" wall-clock string."""
    try:
        parse_clock(value or "")
    except ValueError:
        return False
    return True


def calculate_duration(start_time: str, end_time: str) -> int:
    """Minutes between two wall-clock times, wrapping past midnight."""
    start = parse_clock(start_time, label="start time")
    end = parse_clock(end_time, label="end time")
    if end < start:
        return MINUTES_PER_DAY - start + end
    return end - start


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """Start plus duration, modulo one day. No next-day flag is kept."""
    start = parse_clock(start_time, label="start time")
    return format_clock(start + duration_minutes)


def calculate_start_time(end_time: str, duration_minutes: int) -> str:
    """End minus duration; negative results wrap into the previous day."""
    end = parse_clock(end_time, label="end time")
    total = end - duration_minutes
    if total < 0:
        total += MINUTES_PER_DAY
    return format_clock(total)
