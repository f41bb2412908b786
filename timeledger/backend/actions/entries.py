"""Time entry actions. Entries belong to their creator for good."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..errors import NotFound
from ..forms import TimeEntryForm, time_entry_from_dict, validate_time_entry
from ..models import TimeEntry, User, new_id, utcnow
from ..parsers import from_storage_instant, parse_iso_date, to_storage_instant
from ..policy import Action, ensure_allowed
from ..store import Workspace
from ..utils import total_minutes, week_range
from .base import Result, action, ok, require_valid

logger = logging.getLogger(__name__)


def _check_project(store: Workspace, actor: User, project_id: str | None) -> None:
    if not project_id:
        return
    if project_id not in store.projects:
        raise NotFound("Project not found")
    ensure_allowed(
        actor,
        Action.LOG_TIME,
        store.projects[project_id],
        membership=store.find_membership(project_id, actor.id),
    )


def _validated(data: dict[str, Any]) -> TimeEntryForm:
    form = time_entry_from_dict(data)
    require_valid(validate_time_entry(form))
    return form


def _apply(entry: TimeEntry, form: TimeEntryForm) -> None:
    entry.date = to_storage_instant(form.date)  # type: ignore[arg-type]
    entry.project_id = form.project_id
    entry.duration = int(form.duration or 0)
    entry.start_time = form.start_time
    entry.end_time = form.end_time
    entry.description = form.description
    entry.billable = form.billable


def _sort_key(entry: TimeEntry) -> tuple:
    return (from_storage_instant(entry.date), entry.created_at)


@action("Failed to create time entry")
def create_time_entry(store: Workspace, actor: User, data: dict[str, Any]) -> Result:
    """Create an entry for `actor`.

    `data` keys: date (YYYY-MM-DD), duration (minutes or text like "2h 30m"),
    description, and optional project_id, start_time, end_time, billable.
    """
    form = _validated(data)
    _check_project(store, actor, form.project_id)
    entry = TimeEntry(
        id=new_id(),
        user_id=actor.id,
        date=to_storage_instant(form.date),  # type: ignore[arg-type]
        duration=int(form.duration or 0),
        description=form.description,
        project_id=form.project_id,
        start_time=form.start_time,
        end_time=form.end_time,
        billable=form.billable,
    )
    store.entries[entry.id] = entry
    logger.info("Time entry %s created by %s", entry.id, actor.id)
    return ok(entry)


@action("Failed to update time entry")
def update_time_entry(store: Workspace, actor: User, entry_id: str, data: dict[str, Any]) -> Result:
    form = _validated(data)
    entry = store.get_entry(entry_id)
    ensure_allowed(actor, Action.EDIT_ENTRY, entry)
    _check_project(store, actor, form.project_id)
    _apply(entry, form)
    entry.updated_at = utcnow()
    logger.info("Time entry %s updated by %s", entry.id, actor.id)
    return ok(entry)


@action("Failed to delete time entry")
def delete_time_entry(store: Workspace, actor: User, entry_id: str) -> Result:
    entry = store.get_entry(entry_id)
    ensure_allowed(actor, Action.EDIT_ENTRY, entry)
    del store.entries[entry_id]
    logger.info("Time entry %s deleted by %s", entry_id, actor.id)
    return ok()


@action("Failed to fetch time entries", data=[])
def get_time_entries(
    store: Workspace,
    actor: User,
    *,
    start_date: str | date | None = None,
    end_date: str | date | None = None,
    project_id: str | None = None,
) -> Result:
    """The actor's entries, newest day first. Date bounds are inclusive."""
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    rows = []
    for entry in store.entries_for(actor.id):
        day = from_storage_instant(entry.date)
        if start and day < start:
            continue
        if end and day > end:
            continue
        if project_id and entry.project_id != project_id:
            continue
        rows.append(entry)
    rows.sort(key=_sort_key, reverse=True)
    return ok(rows)


@action("Failed to fetch time entry")
def get_time_entry(store: Workspace, actor: User, entry_id: str) -> Result:
    entry = store.get_entry(entry_id)
    ensure_allowed(actor, Action.EDIT_ENTRY, entry)
    return ok(entry)


@action("Failed to fetch time entries", data=[])
def get_week_time_entries(
    store: Workspace, actor: User, week_start: str | date, week_end: str | date
) -> Result:
    result = get_time_entries(store, actor, start_date=week_start, end_date=week_end)
    rows = list(result.get("data") or [])
    rows.sort(key=_sort_key)
    return ok(rows)


@action(
    "Failed to fetch stats",
    data={"today_minutes": 0, "week_minutes": 0, "active_projects": 0},
)
def get_time_entry_stats(store: Workspace, actor: User, today: date | None = None) -> Result:
    """Minutes logged today and this week (Sunday start), active owned projects."""
    today = today or date.today()
    first, last = week_range(today)
    mine = store.entries_for(actor.id)
    days = [(from_storage_instant(e.date), e) for e in mine]
    return ok(
        {
            "today_minutes": total_minutes(e for d, e in days if d == today),
            "week_minutes": total_minutes(e for d, e in days if first <= d <= last),
            "active_projects": sum(
                1
                for p in store.projects.values()
                if p.user_id == actor.id and p.status == "active"
            ),
        }
    )
