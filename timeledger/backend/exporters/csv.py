"""CSV export for time entries."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping, Sequence

from ..durations import format_decimal_hours
from ..models import Project, TimeEntry
from ..parsers import from_storage_instant

ENTRY_HEADERS = (
    "date",
    "project",
    "hours",
    "minutes",
    "start_time",
    "end_time",
    "billable",
    "description",
)


def entry_rows(
    entries: Iterable[TimeEntry], projects: Mapping[str, Project] | None = None
) -> list[dict[str, object]]:
    """Flatten entries for export, oldest day first; project ids become names."""
    projects = projects or {}
    rows = []
    for e in sorted(entries, key=lambda e: (from_storage_instant(e.date), e.created_at)):
        project = projects.get(e.project_id) if e.project_id else None
        rows.append(
            {
                "date": from_storage_instant(e.date).isoformat(),
                "project": project.name if project else (e.project_id or ""),
                "hours": format_decimal_hours(e.duration),
                "minutes": e.duration,
                "start_time": e.start_time or "",
                "end_time": e.end_time or "",
                "billable": "yes" if e.billable else "no",
                "description": e.description,
            }
        )
    return rows


def render_csv(rows: Iterable[Mapping[str, object]], fieldnames: Sequence[str] = ENTRY_HEADERS) -> str:
    """Render dict rows to CSV text with the given headers; unknown keys are dropped."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(fieldnames), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row or {})
    return buf.getvalue()
