"""Keep start time, end time and duration consistent while an entry is edited.

The reconciler is a pure function of the three visible fields plus the field
the user touched last. It derives at most one other field per call:

    start + end (last edited start/end)  -> duration
    start + duration (last duration/start) -> end
    end + duration (last edited end)     -> start

The field the user is typing in is never the one overwritten. Computation
errors (half-typed times) are reported as a failed outcome instead of being
raised so the editor can leave fields untouched and keep going.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .durations import (
    calculate_duration,
    calculate_end_time,
    calculate_start_time,
    format_duration,
    parse_duration,
)


class LastEdited(str, Enum):
    NONE = "none"
    DURATION = "duration"
    START = "start"
    END = "end"


class ReconcileStatus(str, Enum):
    UNCHANGED = "unchanged"
    PATCHED = "patched"
    FAILED = "failed"


@dataclass(frozen=True)
class TimeFields:
    """The three observable time fields of the entry form."""

    start_time: str = ""
    end_time: str = ""
    duration_text: str = ""


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of one reconcile step.

    `field` is one of "duration_text", "start_time", "end_time" when patched.
    """

    status: ReconcileStatus
    field: str | None = None
    value: str | None = None
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.status is ReconcileStatus.PATCHED

    def apply(self, fields: TimeFields) -> TimeFields:
        """Return `fields` with the patch applied (unchanged otherwise)."""
        if not self.changed or self.field is None:
            return fields
        values = {
            "start_time": fields.start_time,
            "end_time": fields.end_time,
            "duration_text": fields.duration_text,
        }
        values[self.field] = self.value or ""
        return TimeFields(**values)


_UNCHANGED = Reconciliation(status=ReconcileStatus.UNCHANGED)


def _patch(field: str, current: str, value: str) -> Reconciliation:
    if value == current:
        return _UNCHANGED
    return Reconciliation(status=ReconcileStatus.PATCHED, field=field, value=value)


def reconcile(fields: TimeFields, last_edited: LastEdited) -> Reconciliation:
    """Derive the one field implied by the other two, if any rule applies."""
    start = (fields.start_time or "").strip()
    end = (fields.end_time or "").strip()
    parsed = parse_duration(fields.duration_text)
    try:
        if start and end and last_edited in (LastEdited.START, LastEdited.END):
            minutes = calculate_duration(start, end)
            if minutes == parsed:
                return _UNCHANGED
            return _patch("duration_text", fields.duration_text, format_duration(minutes))

        if parsed and parsed > 0 and start and last_edited in (
            LastEdited.DURATION,
            LastEdited.START,
        ):
            return _patch("end_time", end, calculate_end_time(start, parsed))

        if parsed and parsed > 0 and end and last_edited is LastEdited.END:
            return _patch("start_time", start, calculate_start_time(end, parsed))
    except ValueError as exc:
        return Reconciliation(status=ReconcileStatus.FAILED, error=str(exc))

    return _UNCHANGED
