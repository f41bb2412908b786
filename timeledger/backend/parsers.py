"""Calendar-date handling for time entries.

Two concerns live here:

- The storage convention. A calendar day the user picked is persisted as the
  UTC-midnight instant built from its (year, month, day). Reading it back
  must use the instant's UTC fields, never the reader's local fields, or the
  day shifts by one for readers west of UTC.
- Resolving user phrases ("today", "last friday", "September 9 2025") to a
  calendar day, anchored on a timezone-aware "today".
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .durations import parse_duration


def to_storage_instant(day: date) -> datetime:
    """Local calendar day -> UTC-midnight instant."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def from_storage_instant(instant: datetime) -> date:
    """UTC-midnight instant -> the calendar day it was built from.

    Aware instants are converted back to UTC first, so an instant rendered in
    any reader timezone recovers the same day. Naive values are taken as UTC.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return date(instant.year, instant.month, instant.day)


def same_calendar_day(instant: datetime, day: date) -> bool:
    return from_storage_instant(instant) == day


def parse_iso_date(value: str | date | None) -> date | None:
    """Parse "YYYY-MM-DD" (datetimes and dates pass through). None if invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return from_storage_instant(value)
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


_MONTHS = {
    name: index
    for index, names in enumerate(
        (
            ("jan", "january"),
            ("feb", "february"),
            ("mar", "march"),
            ("apr", "april"),
            ("may",),
            ("jun", "june"),
            ("jul", "july"),
            ("aug", "august"),
            ("sep", "sept", "september"),
            ("oct", "october"),
            ("nov", "november"),
            ("dec", "december"),
        ),
        start=1,
    )
    for name in names
}

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_RELATIVE_DAYS = {
    "today": 0,
    "todays date": 0,
    "today's date": 0,
    "yesterday": -1,
    "tomorrow": 1,
}


def _resolve_tz(name: str | None) -> tzinfo:
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.now().astimezone().tzinfo or timezone.utc


def _safe_date(year: int, month: int | None, day: int) -> date | None:
    if not month:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_date_phrase(
    phrase: str,
    *,
    timezone: str | None = None,
    base_date: str | None = None,
) -> date | None:
    """Resolve a date phrase to a calendar day, or None if not understood.

    Supported: today/yesterday/tomorrow, YYYY-MM-DD, "September 9 2025",
    "9 September 2025" (commas and ordinals tolerated), MM/DD/YYYY and
    "this|next|last <weekday>".

    Args:
        phrase: The user-provided date phrase.
        timezone: Optional IANA name used to decide what "today" is.
        base_date: Optional YYYY-MM-DD anchor for relative phrases.
    """
    s = (phrase or "").strip().lower()
    if not s:
        return None

    today = parse_iso_date(base_date) or datetime.now(_resolve_tz(timezone)).date()

    if s in _RELATIVE_DAYS:
        return today + timedelta(days=_RELATIVE_DAYS[s])

    iso = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", s)
    if iso:
        return _safe_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    m = re.search(r"\b([a-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?\s*,?\s*(\d{4})\b", s)
    if m:
        found = _safe_date(int(m.group(3)), _MONTHS.get(m.group(1)), int(m.group(2)))
        if found:
            return found

    m = re.search(r"\b(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\s*,?\s*(\d{4})\b", s)
    if m:
        found = _safe_date(int(m.group(3)), _MONTHS.get(m.group(2)), int(m.group(1)))
        if found:
            return found

    m = re.search(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b", s)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))

    m = re.search(r"\b(this|next|last)\s+(" + "|".join(_WEEKDAYS) + r")\b", s)
    if m:
        offset = (_WEEKDAYS.index(m.group(2)) - today.weekday()) % 7
        shift = {"this": 0, "next": 7, "last": -7}[m.group(1)]
        return today + timedelta(days=offset + shift)

    return None


def parse_entry_line(
    text: str, *, timezone: str | None = None, base_date: str | None = None
) -> dict[str, Any]:
    """Split a one-line entry like "2h 30m on 2025-09-01 for Website: fixed nav bug".

    - Date: first "on <phrase>" or ISO date; resolved via `resolve_date_phrase`.
    - Duration: leading token(s) accepted by `parse_duration`.
    - Project: text after "for " up to the ": " separator.
    - Description: text after the first ": ".

    `date_text` keeps the date as written, so an unresolved phrase can be
    told apart from no date at all. Missing parts come back as None for
    validation to report.
    """
    s = (text or "").strip()
    result: dict[str, Any] = {
        "duration": None,
        "date": None,
        "date_text": None,
        "project": None,
        "description": None,
    }
    if not s:
        return result

    head = s
    # ": " separates the description; a bare "1:30" is a duration.
    sep = re.search(r":\s+", s)
    if sep:
        head = s[: sep.start()]
        result["description"] = s[sep.end() :].strip() or None

    proj = re.search(r"\bfor\s+(.+)$", head, flags=re.IGNORECASE)
    if proj:
        result["project"] = proj.group(1).strip() or None
        head = head[: proj.start()]

    when = re.search(r"\bon\s+(.+)$", head, flags=re.IGNORECASE)
    if when:
        result["date_text"] = when.group(1).strip()
        result["date"] = resolve_date_phrase(
            when.group(1), timezone=timezone, base_date=base_date
        )
        head = head[: when.start()]
    else:
        iso = re.search(r"\b\d{4}-\d{2}-\d{2}\b", head)
        if iso:
            result["date_text"] = iso.group(0)
            result["date"] = resolve_date_phrase(iso.group(0))
            head = head[: iso.start()] + head[iso.end() :]

    result["duration"] = parse_duration(head.strip())
    return result
