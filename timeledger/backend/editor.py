"""Time-entry editing session.

One session mirrors one open entry form:

    open -> set_field (repeat) -> [collision -> cancel | switch_to_edit] -> submit

Every method returns a list of `EditorEvent`s suitable for streaming to a UI
or for an assistant to narrate. Editing start/end/duration keeps the three
consistent through the reconciler; changing project or date re-runs the
collision check, and a pending collision blocks submission.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .actions.entries import create_time_entry, update_time_entry
from .collisions import CANCEL, SWITCH_TO_EDIT, Collision, find_collision
from .durations import format_decimal_hours, format_duration, parse_duration
from .forms import time_entry_from_dict, validate_time_entry
from .models import TimeEntry, User
from .parsers import from_storage_instant, parse_iso_date
from .reconcile import LastEdited, ReconcileStatus, TimeFields, reconcile
from .store import Workspace

_TIME_FIELDS = {
    "duration_text": LastEdited.DURATION,
    "start_time": LastEdited.START,
    "end_time": LastEdited.END,
}
_COLLISION_FIELDS = ("project_id", "date")
_OTHER_FIELDS = ("description", "billable")


@dataclass
class EditorEvent:
    """A simple event structure suitable for streaming to a UI."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class EditorState:
    date: date | None = None
    project_id: str | None = None
    duration_text: str = ""
    start_time: str = ""
    end_time: str = ""
    description: str = ""
    billable: bool = False
    last_edited: LastEdited = LastEdited.NONE
    target_id: str | None = None  # None while creating
    collision: Collision | None = None
    open: bool = True


def _state_from_entry(entry: TimeEntry) -> EditorState:
    return EditorState(
        date=from_storage_instant(entry.date),
        project_id=entry.project_id,
        duration_text=format_duration(entry.duration) if entry.duration else "",
        start_time=entry.start_time or "",
        end_time=entry.end_time or "",
        description=entry.description or "",
        billable=entry.billable,
        target_id=entry.id,
    )


class EntryEditor:
    """Form state for creating or editing one of a user's entries.

    `entries` is the user's existing entries, consulted for collisions.
    """

    def __init__(
        self,
        entries: Iterable[TimeEntry],
        *,
        entry: TimeEntry | None = None,
        default_date: date | None = None,
    ) -> None:
        self.entries = list(entries)
        if entry is not None:
            self.state = _state_from_entry(entry)
        else:
            self.state = EditorState(date=default_date or date.today())
        self._check_collision()

    @property
    def mode(self) -> str:
        return "edit" if self.state.target_id else "create"

    @property
    def parsed_duration(self) -> int | None:
        return parse_duration(self.state.duration_text)

    @property
    def time_fields(self) -> TimeFields:
        return TimeFields(
            start_time=self.state.start_time,
            end_time=self.state.end_time,
            duration_text=self.state.duration_text,
        )

    def preview(self) -> str | None:
        """Helper text under the duration field, e.g. "= 2h 30m (2.50 hours)"."""
        minutes = self.parsed_duration
        if minutes is None:
            return None
        return f"= {format_duration(minutes)} ({format_decimal_hours(minutes)} hours)"

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "mode": self.mode,
            "entry_id": s.target_id,
            "date": s.date.isoformat() if s.date else None,
            "project_id": s.project_id,
            "duration_text": s.duration_text,
            "duration_minutes": self.parsed_duration,
            "start_time": s.start_time or None,
            "end_time": s.end_time or None,
            "description": s.description,
            "billable": s.billable,
            "collision": s.collision.existing.id if s.collision else None,
        }

    # --- field edits ---

    def set_field(self, name: str, value: Any) -> list[EditorEvent]:
        """Apply one user edit and whatever it implies."""
        if not self.state.open:
            return [EditorEvent(type="error", payload={"message": "The form is closed."})]
        events: list[EditorEvent] = []

        if name in _TIME_FIELDS:
            setattr(self.state, name, str(value or "").strip())
            self.state.last_edited = _TIME_FIELDS[name]
            events.append(EditorEvent(type="field_changed", payload={"field": name, "value": value}))
            events.extend(self._reconcile())
            if self.state.duration_text and self.parsed_duration is None:
                events.append(
                    EditorEvent(
                        type="field_invalid",
                        payload={"field": "duration_text", "message": "Invalid duration format"},
                    )
                )
        elif name in _COLLISION_FIELDS:
            if name == "date":
                self.state.date = parse_iso_date(value)
            else:
                self.state.project_id = str(value) if value else None
            events.append(EditorEvent(type="field_changed", payload={"field": name, "value": value}))
            events.extend(self._check_collision())
        elif name in _OTHER_FIELDS:
            if name == "billable":
                self.state.billable = bool(value)
            else:
                self.state.description = str(value or "")
            events.append(EditorEvent(type="field_changed", payload={"field": name, "value": value}))
        else:
            events.append(EditorEvent(type="error", payload={"message": f"Unknown field: {name}"}))
        return events

    def _reconcile(self) -> list[EditorEvent]:
        outcome = reconcile(self.time_fields, self.state.last_edited)
        if outcome.status is ReconcileStatus.PATCHED and outcome.field:
            setattr(self.state, outcome.field, outcome.value or "")
            return [
                EditorEvent(
                    type="field_derived",
                    payload={"field": outcome.field, "value": outcome.value},
                )
            ]
        if outcome.status is ReconcileStatus.FAILED:
            # Fields stay as typed; the user keeps editing.
            return [EditorEvent(type="reconcile_skipped", payload={"reason": outcome.error})]
        return []

    def _check_collision(self) -> list[EditorEvent]:
        self.state.collision = find_collision(
            self.entries, self.state.project_id, self.state.date, self.state.target_id
        )
        if self.state.collision is None:
            return []
        existing = self.state.collision.existing
        return [
            EditorEvent(
                type="collision",
                payload={
                    "message": self.state.collision.message,
                    "existing_id": existing.id,
                    "existing_duration": format_duration(existing.duration),
                    "existing_description": existing.description,
                    "resolutions": list(self.state.collision.resolutions),
                },
            )
        ]

    # --- collision resolutions ---

    def resolve(self, choice: str) -> list[EditorEvent]:
        if choice == CANCEL:
            return self.cancel()
        if choice == SWITCH_TO_EDIT:
            return self.switch_to_edit()
        return [EditorEvent(type="error", payload={"message": f"Unknown resolution: {choice}"})]

    def cancel(self) -> list[EditorEvent]:
        self.state.open = False
        self.state.collision = None
        return [EditorEvent(type="closed", payload={"submitted": False})]

    def switch_to_edit(self) -> list[EditorEvent]:
        """Drop the in-progress entry and edit the colliding one instead.

        Purely local: nothing is saved until `submit`.
        """
        if self.state.collision is None:
            return [EditorEvent(type="error", payload={"message": "No collision to resolve."})]
        self.state = _state_from_entry(self.state.collision.existing)
        # Another entry may share the same project and day.
        collisions = self._check_collision()
        switched = EditorEvent(type="switched_to_edit", payload=self.snapshot())
        return [switched, *collisions]

    # --- submission ---

    def form_data(self) -> dict[str, Any]:
        s = self.state
        return {
            "date": s.date,
            "project_id": s.project_id,
            "duration": self.parsed_duration,
            "start_time": s.start_time or None,
            "end_time": s.end_time or None,
            "description": s.description,
            "billable": s.billable,
        }

    def problems(self) -> list[str]:
        return validate_time_entry(time_entry_from_dict(self.form_data()))

    def submit(self, store: Workspace, actor: User) -> list[EditorEvent]:
        """Validate, then create or update through the entry actions (one call)."""
        if not self.state.open:
            return [EditorEvent(type="error", payload={"message": "The form is closed."})]
        if self.state.collision is not None:
            return [
                EditorEvent(
                    type="blocked",
                    payload={
                        "message": self.state.collision.message,
                        "resolutions": list(self.state.collision.resolutions),
                    },
                )
            ]
        problems = self.problems()
        if problems:
            return [EditorEvent(type="needs_revision", payload={"problems": problems})]

        if self.state.target_id:
            result = update_time_entry(store, actor, self.state.target_id, self.form_data())
        else:
            result = create_time_entry(store, actor, self.form_data())
        if result["status"] != "ok":
            return [EditorEvent(type="failed", payload={"message": result["error"]})]

        saved: TimeEntry = result["data"]
        mode = self.mode
        self.state.open = False
        return [
            EditorEvent(type="saved", payload={"mode": mode, "entry_id": saved.id}),
            EditorEvent(type="closed", payload={"submitted": True}),
        ]
