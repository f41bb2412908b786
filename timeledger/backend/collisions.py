"""Duplicate detection for (project, calendar day) time entries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .models import TimeEntry
from .parsers import same_calendar_day

CANCEL = "cancel"
SWITCH_TO_EDIT = "switch_to_edit"
RESOLUTIONS = (CANCEL, SWITCH_TO_EDIT)


@dataclass(frozen=True)
class Collision:
    """A blocking warning: `existing` already covers the selected project and day."""

    existing: TimeEntry
    resolutions: tuple[str, ...] = RESOLUTIONS

    @property
    def message(self) -> str:
        return "An entry for this project and day already exists. Edit it instead?"


def find_collision(
    entries: Iterable[TimeEntry],
    project_id: str | None,
    on_date: date | None,
    editing_id: str | None = None,
) -> Collision | None:
    """Return the first entry on the same project and calendar day, if any.

    The entry being edited (`editing_id`) never collides with itself. Without
    a project or a date there is nothing to compare, so no collision.
    """
    if not project_id or on_date is None:
        return None
    for entry in entries:
        if entry.id == editing_id:
            continue
        if entry.project_id == project_id and same_calendar_day(entry.date, on_date):
            return Collision(existing=entry)
    return None
