from datetime import date

from timeledger.backend.exporters.csv import ENTRY_HEADERS, entry_rows, render_csv
from timeledger.backend.models import Project, TimeEntry
from timeledger.backend.parsers import to_storage_instant
from timeledger.backend.utils import (
    classify_day,
    get_full_day_hours,
    week_project_totals,
    week_range,
    week_summary,
)


def _entry(entry_id, day, minutes, project_id=None, **kw):
    return TimeEntry(
        id=entry_id,
        user_id="u1",
        date=to_storage_instant(day),
        duration=minutes,
        description=kw.pop("description", "Worked on the thing"),
        project_id=project_id,
        **kw,
    )


def test_classify_day_full_partial_and_overtime():
    assert classify_day(480, full_day=8.0) is None
    assert classify_day(390, full_day=8.0) == "Partial day — 1h 30m short of 8h"
    assert classify_day(510, full_day=8.0) == "Overtime — +30m over 8h"


def test_full_day_hours_from_env(monkeypatch):
    monkeypatch.setenv("TIMELEDGER_FULL_DAY_HOURS", "7.5")
    assert get_full_day_hours() == 7.5
    assert classify_day(450) is None
    monkeypatch.setenv("TIMELEDGER_FULL_DAY_HOURS", "abc")
    assert get_full_day_hours() == 8.0
    monkeypatch.setenv("TIMELEDGER_FULL_DAY_HOURS", "-1")
    assert get_full_day_hours() == 8.0


def test_week_range_starts_on_sunday():
    assert week_range(date(2024, 3, 15)) == (date(2024, 3, 10), date(2024, 3, 16))
    assert week_range(date(2024, 3, 10)) == (date(2024, 3, 10), date(2024, 3, 16))


def test_week_summary_rows(monkeypatch):
    monkeypatch.delenv("TIMELEDGER_FULL_DAY_HOURS", raising=False)
    entries = [
        _entry("a", date(2024, 3, 11), 300),
        _entry("b", date(2024, 3, 11), 180),
        _entry("c", date(2024, 3, 12), 90),
        _entry("d", date(2024, 3, 20), 60),
    ]
    rows = week_summary(entries, date(2024, 3, 13))
    assert [r["weekday"] for r in rows][:2] == ["Sunday", "Monday"]
    assert len(rows) == 7
    monday, tuesday = rows[1], rows[2]
    assert monday["minutes"] == 480 and monday["note"] is None
    assert tuesday["duration"] == "1h 30m"
    assert tuesday["note"] == "Partial day — 6h 30m short of 8h"
    assert rows[0]["minutes"] == 0 and rows[0]["note"] is None


def test_entry_rows_sorted_with_project_names():
    projects = {"p1": Project(id="p1", name="Website", client_id="c", user_id="u1")}
    entries = [
        _entry("b", date(2024, 3, 16), 45, "p1", billable=True, start_time="09:00", end_time="09:45"),
        _entry("a", date(2024, 3, 15), 90),
    ]
    rows = entry_rows(entries, projects)
    assert [r["date"] for r in rows] == ["2024-03-15", "2024-03-16"]
    assert rows[0]["project"] == "" and rows[0]["hours"] == "1.50"
    assert rows[1]["project"] == "Website"
    assert rows[1]["billable"] == "yes" and rows[1]["start_time"] == "09:00"


def test_render_csv_headers_and_escaping():
    rows = entry_rows([_entry("a", date(2024, 3, 15), 30, description='Fixed "login", again')])
    out = render_csv(rows)
    assert out.splitlines()[0] == ",".join(ENTRY_HEADERS)
    assert '"Fixed ""login"", again"' in out


def test_render_csv_unknown_keys_ignored():
    out = render_csv([{"date": "2024-03-15", "extra": 123}], ["date"])
    assert ",123" not in out
    assert "2024-03-15" in out


def test_week_project_totals_rows_and_grand_total():
    entries = [
        _entry("a", date(2024, 3, 11), 120, "p1"),
        _entry("b", date(2024, 3, 12), 60, "p1"),
        _entry("c", date(2024, 3, 12), 300, "p2"),
        _entry("d", date(2024, 3, 16), 15),
        _entry("e", date(2024, 3, 17), 999, "p1"),
    ]
    table = week_project_totals(entries, date(2024, 3, 13))
    assert table["week_start"] == "2024-03-10"
    assert [row["project_id"] for row in table["projects"]] == ["p2", "p1", None]
    p1 = table["projects"][1]
    assert p1["minutes_by_day"] == [0, 120, 60, 0, 0, 0, 0]
    assert p1["total"] == 180
    assert table["grand_total"] == 495


def test_week_project_totals_empty_week():
    assert week_project_totals([], date(2024, 3, 13)) == {
        "week_start": "2024-03-10",
        "projects": [],
        "grand_total": 0,
    }
