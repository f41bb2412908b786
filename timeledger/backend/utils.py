from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import date, timedelta

from .durations import format_duration
from .models import TimeEntry
from .parsers import from_storage_instant


def get_full_day_hours() -> float:
    """Return the configured full-day hours (default 8.0)."""
    try:
        val = float(os.environ.get("TIMELEDGER_FULL_DAY_HOURS", "8") or 8)
    except ValueError:
        return 8.0
    return val if val > 0 else 8.0


def total_minutes(entries: Iterable[TimeEntry]) -> int:
    return sum(e.duration for e in entries)


def week_range(day: date) -> tuple[date, date]:
    """Sunday through Saturday of the week containing `day`."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def group_by_day(entries: Iterable[TimeEntry]) -> dict[date, list[TimeEntry]]:
    """Entries keyed by calendar day, newest day first."""
    groups: dict[date, list[TimeEntry]] = {}
    for entry in entries:
        groups.setdefault(from_storage_instant(entry.date), []).append(entry)
    return dict(sorted(groups.items(), key=lambda kv: kv[0], reverse=True))


def classify_day(minutes: int, full_day: float | None = None) -> str | None:
    """Standardized note for a day's total against a full day.

    - Exactly a full day: None.
    - Under: "Partial day — 1h 30m short of 8h".
    - Over: "Overtime — +30m over 8h".
    """
    full = full_day if full_day is not None else get_full_day_hours()
    delta = minutes - round(full * 60)
    if delta == 0:
        return None
    if delta < 0:
        return f"Partial day — {format_duration(-delta)} short of {full:g}h"
    return f"Overtime — +{format_duration(delta)} over {full:g}h"


def week_summary(entries: Iterable[TimeEntry], day: date) -> list[dict[str, object]]:
    """One row per day of the week containing `day`, with totals and notes."""
    start, _ = week_range(day)
    by_day = group_by_day(entries)
    rows = []
    for offset in range(7):
        current = start + timedelta(days=offset)
        minutes = total_minutes(by_day.get(current, []))
        rows.append(
            {
                "date": current.isoformat(),
                "weekday": current.strftime("%A"),
                "minutes": minutes,
                "duration": format_duration(minutes),
                "note": classify_day(minutes) if minutes else None,
            }
        )
    return rows


def week_project_totals(entries: Iterable[TimeEntry], day: date) -> dict[str, object]:
    """Minutes per project per day for the week containing `day`.

    Rows are ordered by weekly total, largest first; unassigned time is keyed
    by None. `grand_total` sums every row.
    """
    start, end = week_range(day)
    rows: dict[str | None, list[int]] = {}
    for entry in entries:
        current = from_storage_instant(entry.date)
        if not start <= current <= end:
            continue
        minutes = rows.setdefault(entry.project_id, [0] * 7)
        minutes[(current - start).days] += entry.duration
    projects = [
        {"project_id": project_id, "minutes_by_day": minutes, "total": sum(minutes)}
        for project_id, minutes in rows.items()
    ]
    projects.sort(key=lambda row: row["total"], reverse=True)
    return {
        "week_start": start.isoformat(),
        "projects": projects,
        "grand_total": sum(row["total"] for row in projects),
    }
