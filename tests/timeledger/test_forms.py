from datetime import date

from timeledger.backend.forms import (
    project_from_dict,
    time_entry_from_dict,
    validate_full_name,
    validate_project,
    validate_time_entry,
)


def test_time_entry_from_dict_coerces_loose_input():
    form = time_entry_from_dict(
        {
            "date": "2025-09-09",
            "duration": "2h 30m",
            "description": "  Reviewed the pull request  ",
            "project_id": "",
            "start_time": " 09:00 ",
        }
    )
    assert form.date == date(2025, 9, 9)
    assert form.duration == 150
    assert form.description == "Reviewed the pull request"
    assert form.project_id is None
    assert form.start_time == "09:00"
    assert validate_time_entry(form) == []


def test_time_entry_problems():
    form = time_entry_from_dict(
        {"date": "2025-09-09", "duration": "lots", "description": "Short", "end_time": "25:00"}
    )
    assert validate_time_entry(form) == [
        "Invalid duration format",
        "End time must be HH:MM",
        "Description is required",
    ]
    assert time_entry_from_dict({"duration": True}).duration is None


def test_project_budget_and_status():
    ok = project_from_dict({"name": "Site", "client_id": "c1", "budget_amount": "2500"})
    assert validate_project(ok) == []
    bad = project_from_dict({"name": "Site", "client_id": "c1", "budget_amount": 999, "status": "paused"})
    assert validate_project(bad) == [
        "Add a reasonable amount",
        "Status must be one of: active, archived, completed",
    ]


def test_full_name_length():
    assert validate_full_name("Ada") == []
    assert validate_full_name("  A ") == ["Full name is required"]
