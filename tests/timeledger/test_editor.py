from datetime import date

from timeledger.backend.config import build_workspace
from timeledger.backend.editor import EntryEditor
from timeledger.backend.parsers import from_storage_instant
from timeledger.backend.reconcile import LastEdited


def _workspace():
    return build_workspace(
        {
            "users": [
                {"id": "u-admin", "email": "ada@example.com", "role": "admin"},
                {"id": "u-sam", "email": "sam@example.com"},
            ],
            "clients": [{"id": "c1", "name": "Acme"}],
            "projects": [
                {"id": "p-web", "name": "Website", "client_id": "c1", "owner": "u-admin"},
                {"id": "p-api", "name": "API", "client_id": "c1", "owner": "u-admin"},
            ],
            "members": [
                {"project": "p-web", "user": "u-sam", "payout_rate": 40, "charge_rate": 90},
                {"project": "p-api", "user": "u-sam", "payout_rate": 40, "charge_rate": 90},
            ],
            "entries": [
                {
                    "id": "e-existing",
                    "user": "u-sam",
                    "project": "p-web",
                    "date": "2025-09-08",
                    "duration": 150,
                    "start_time": "09:00",
                    "end_time": "11:30",
                    "description": "Fixed navigation layout",
                    "billable": True,
                }
            ],
        }
    )


def _types(events):
    return [e.type for e in events]


def test_time_fields_reconcile_as_user_types():
    ws = _workspace()
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 9))
    editor.set_field("start_time", "23:00")
    events = editor.set_field("duration_text", "2h")
    assert editor.state.end_time == "01:00"
    assert "field_derived" in _types(events)
    assert editor.state.last_edited is LastEdited.DURATION

    editor.set_field("start_time", "22:30")
    # Start and end both present: duration follows, end stays put.
    assert editor.state.end_time == "01:00"
    assert editor.state.duration_text == "2h 30m"
    assert editor.preview() == "= 2h 30m (2.50 hours)"


def test_half_typed_time_is_skipped_quietly():
    ws = _workspace()
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 9))
    editor.set_field("duration_text", "1h")
    events = editor.set_field("start_time", "9:")
    assert "reconcile_skipped" in _types(events)
    assert editor.state.end_time == ""
    assert editor.state.start_time == "9:"


def test_invalid_duration_is_flagged_and_blocks_submit():
    ws = _workspace()
    sam = ws.get_user("u-sam")
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 9))
    events = editor.set_field("duration_text", "lots")
    assert "field_invalid" in _types(events)
    editor.set_field("description", "Wrote the release notes")
    result = editor.submit(ws, sam)
    assert _types(result) == ["needs_revision"]
    assert "Invalid duration format" in result[0].payload["problems"]


def test_collision_only_rechecked_on_project_or_date():
    ws = _workspace()
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 8))
    assert _types(editor.set_field("description", "Some other work today")) == ["field_changed"]
    events = editor.set_field("project_id", "p-web")
    assert "collision" in _types(events)
    collision = next(e for e in events if e.type == "collision")
    assert collision.payload["existing_id"] == "e-existing"
    assert collision.payload["resolutions"] == ["cancel", "switch_to_edit"]

    # Moving to another day clears it.
    assert "collision" not in _types(editor.set_field("date", "2025-09-09"))
    assert editor.state.collision is None


def test_collision_blocks_submit_and_cancel_closes():
    ws = _workspace()
    sam = ws.get_user("u-sam")
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 8))
    editor.set_field("project_id", "p-web")
    editor.set_field("duration_text", "1h")
    editor.set_field("description", "Duplicate attempt here")
    assert _types(editor.submit(ws, sam)) == ["blocked"]
    assert _types(editor.resolve("cancel")) == ["closed"]
    assert not editor.state.open
    assert len(ws.entries) == 1


def test_switch_to_edit_repopulates_from_existing_entry():
    ws = _workspace()
    sam = ws.get_user("u-sam")
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 8))
    editor.set_field("duration_text", "45m")
    editor.set_field("description", "New entry that will be dropped")
    editor.set_field("project_id", "p-web")

    events = editor.resolve("switch_to_edit")
    assert _types(events) == ["switched_to_edit"]
    assert editor.mode == "edit"
    snap = events[0].payload
    assert snap["entry_id"] == "e-existing"
    assert snap["duration_text"] == "2h 30m"
    assert snap["start_time"] == "09:00"
    assert snap["description"] == "Fixed navigation layout"
    assert snap["collision"] is None
    # Nothing was saved by switching.
    assert ws.entries["e-existing"].duration == 150

    editor.set_field("end_time", "12:00")
    assert editor.state.duration_text == "3h"
    saved = editor.submit(ws, sam)
    assert _types(saved) == ["saved", "closed"]
    assert saved[0].payload == {"mode": "edit", "entry_id": "e-existing"}
    assert ws.entries["e-existing"].duration == 180
    assert len(ws.entries) == 1


def test_create_mode_submit_creates_entry():
    ws = _workspace()
    sam = ws.get_user("u-sam")
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 9))
    editor.set_field("project_id", "p-api")
    editor.set_field("start_time", "13:00")
    editor.set_field("end_time", "14:15")
    editor.set_field("description", "Reviewed invoice endpoints")
    editor.set_field("billable", True)
    events = editor.submit(ws, sam)
    assert _types(events) == ["saved", "closed"]
    created = ws.entries[events[0].payload["entry_id"]]
    assert created.duration == 75
    assert created.user_id == "u-sam"
    assert created.billable is True
    assert from_storage_instant(created.date) == date(2025, 9, 9)


def test_editing_existing_entry_does_not_collide_with_itself():
    ws = _workspace()
    entry = ws.entries["e-existing"]
    editor = EntryEditor(ws.entries_for("u-sam"), entry=entry)
    assert editor.state.collision is None
    assert editor.set_field("project_id", "p-web")[-1].type == "field_changed"


def test_failed_submit_reports_action_error():
    ws = _workspace()
    admin = ws.get_user("u-admin")
    # The admin owns the project but is not a member of it.
    editor = EntryEditor(ws.entries_for("u-admin"), default_date=date(2025, 9, 9))
    editor.set_field("project_id", "p-web")
    editor.set_field("duration_text", "30m")
    editor.set_field("description", "Planning session notes")
    events = editor.submit(ws, admin)
    assert _types(events) == ["failed"]
    assert "active member" in events[0].payload["message"]
    assert editor.state.open


def test_absurdly_large_duration_is_flagged_not_raised():
    ws = _workspace()
    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 9))
    editor.set_field("start_time", "09:00")
    events = editor.set_field("duration_text", "9" * 400 + ".5h")
    assert "field_invalid" in _types(events)
    assert editor.state.end_time == ""


def test_switch_to_edit_rechecks_against_other_entries():
    ws = _workspace()
    sam = ws.get_user("u-sam")
    twin = build_workspace(
        {
            "users": [{"id": "u-sam", "email": "sam@example.com"}],
            "projects": [{"id": "p-web", "name": "Website", "client_id": "c1", "owner": "u-sam"}],
            "entries": [
                {
                    "id": "e-twin",
                    "user": "u-sam",
                    "project": "p-web",
                    "date": "2025-09-08",
                    "duration": 30,
                    "description": "Second entry on the same day",
                }
            ],
        }
    ).entries["e-twin"]
    ws.entries[twin.id] = twin

    editor = EntryEditor(ws.entries_for("u-sam"), default_date=date(2025, 9, 8))
    editor.set_field("project_id", "p-web")
    first = editor.state.collision.existing.id
    events = editor.resolve("switch_to_edit")
    assert _types(events) == ["switched_to_edit", "collision"]
    assert editor.state.target_id == first
    assert editor.state.collision.existing.id != first
    assert events[0].payload["collision"] == editor.state.collision.existing.id
    assert _types(editor.submit(ws, sam)) == ["blocked"]
