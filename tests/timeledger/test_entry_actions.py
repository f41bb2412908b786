from datetime import date

from timeledger.backend.actions.entries import (
    create_time_entry,
    delete_time_entry,
    get_time_entries,
    get_time_entry,
    get_time_entry_stats,
    get_week_time_entries,
    update_time_entry,
)
from timeledger.backend.config import build_workspace
from timeledger.backend.parsers import from_storage_instant


def _workspace():
    return build_workspace(
        {
            "users": [
                {"id": "sam", "email": "sam@example.com"},
                {"id": "kim", "email": "kim@example.com"},
            ],
            "clients": [{"id": "c1", "name": "Acme"}],
            "projects": [
                {"id": "web", "name": "Website", "client_id": "c1", "owner": "sam"},
                {"id": "api", "name": "API", "client_id": "c1", "owner": "kim"},
            ],
            "members": [
                {"project": "web", "user": "sam", "payout_rate": 40, "charge_rate": 90},
                {"project": "api", "user": "sam", "payout_rate": 40, "charge_rate": 90, "is_active": False},
            ],
        }
    )


def _data(**overrides):
    data = {
        "date": "2024-03-15",
        "duration": "1h 30m",
        "description": "Built the reporting page",
        "project_id": "web",
    }
    data.update(overrides)
    return data


def test_create_stores_utc_midnight_and_owner():
    ws = _workspace()
    sam = ws.get_user("sam")
    result = create_time_entry(ws, sam, _data(start_time="09:00", end_time="10:30", billable=True))
    assert result["status"] == "ok"
    entry = result["data"]
    assert entry.user_id == "sam"
    assert entry.duration == 90
    assert entry.date.hour == 0 and entry.date.utcoffset().total_seconds() == 0
    assert from_storage_instant(entry.date) == date(2024, 3, 15)
    assert entry.billable is True


def test_create_validation_problems():
    ws = _workspace()
    result = create_time_entry(
        ws, ws.get_user("sam"), {"date": "not-a-date", "duration": 0, "description": "short"}
    )
    assert result["status"] == "error"
    assert result["error"] == "Invalid date"
    assert "Duration must be at least 1 minute" in result["problems"]
    assert "Description is required" in result["problems"]
    assert ws.entries == {}


def test_create_requires_active_membership():
    ws = _workspace()
    sam = ws.get_user("sam")
    result = create_time_entry(ws, sam, _data(project_id="api"))
    assert result == {
        "status": "error",
        "error": "You must be an active member of this project to log time to it",
    }
    assert create_time_entry(ws, sam, _data(project_id=None))["status"] == "ok"


def test_only_the_owner_updates_or_deletes():
    ws = _workspace()
    sam, kim = ws.get_user("sam"), ws.get_user("kim")
    entry = create_time_entry(ws, sam, _data())["data"]

    assert update_time_entry(ws, kim, entry.id, _data(project_id=None)) == {
        "status": "error",
        "error": "Unauthorized",
    }
    assert delete_time_entry(ws, kim, entry.id)["error"] == "Unauthorized"
    assert get_time_entry(ws, kim, entry.id)["error"] == "Unauthorized"

    updated = update_time_entry(ws, sam, entry.id, _data(duration=45, date="2024-03-16"))
    assert updated["status"] == "ok"
    assert entry.duration == 45
    assert from_storage_instant(entry.date) == date(2024, 3, 16)

    assert delete_time_entry(ws, sam, entry.id) == {"status": "ok"}
    assert delete_time_entry(ws, sam, entry.id)["error"] == "Time entry not found"


def test_listing_filters_and_order():
    ws = _workspace()
    sam, kim = ws.get_user("sam"), ws.get_user("kim")
    for day in ("2024-03-14", "2024-03-16", "2024-03-15"):
        create_time_entry(ws, sam, _data(date=day))
    create_time_entry(ws, kim, _data(project_id=None))

    listed = get_time_entries(ws, sam)["data"]
    assert [from_storage_instant(e.date).isoformat() for e in listed] == [
        "2024-03-16",
        "2024-03-15",
        "2024-03-14",
    ]
    bounded = get_time_entries(ws, sam, start_date="2024-03-15", end_date="2024-03-15")["data"]
    assert len(bounded) == 1
    assert get_time_entries(ws, sam, project_id="api")["data"] == []

    week = get_week_time_entries(ws, sam, "2024-03-10", "2024-03-16")["data"]
    assert [from_storage_instant(e.date).day for e in week] == [14, 15, 16]


def test_stats_today_and_sunday_week():
    ws = _workspace()
    sam = ws.get_user("sam")
    # 2024-03-15 is a Friday; its week starts Sunday 2024-03-10.
    create_time_entry(ws, sam, _data(date="2024-03-15", duration=60))
    create_time_entry(ws, sam, _data(date="2024-03-10", duration=30))
    create_time_entry(ws, sam, _data(date="2024-03-09", duration=15))
    stats = get_time_entry_stats(ws, sam, today=date(2024, 3, 15))["data"]
    assert stats == {"today_minutes": 60, "week_minutes": 90, "active_projects": 1}
