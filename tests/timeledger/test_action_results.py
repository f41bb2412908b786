from timeledger.backend.actions.base import action, ok
from timeledger.backend.actions.entries import get_time_entry_stats
from timeledger.backend.errors import NotFound, ValidationFailed


@action("Failed to fetch things", data=[])
def _missing():
    raise NotFound("Thing not found")


@action("Failed to fetch things", data=[])
def _broken():
    raise RuntimeError("boom")


@action("Failed to save thing")
def _invalid():
    raise ValidationFailed(["Name is required", "Invalid email"])


def test_error_results_carry_message_and_fallback():
    assert _missing() == {"status": "error", "error": "Thing not found", "data": []}
    assert _broken() == {"status": "error", "error": "Failed to fetch things", "data": []}
    assert _invalid() == {
        "status": "error",
        "error": "Name is required",
        "problems": ["Name is required", "Invalid email"],
    }


def test_fallback_data_is_not_shared_between_calls():
    first = _missing()
    first["data"].append("stale")
    assert _missing()["data"] == []


def test_stats_fallback_is_fresh_per_call():
    # No actor: the attribute lookup fails inside the action.
    first = get_time_entry_stats(None, None)
    assert first["status"] == "error"
    first["data"]["today_minutes"] = 99
    assert get_time_entry_stats(None, None)["data"]["today_minutes"] == 0


def test_ok_omits_missing_data():
    assert ok() == {"status": "ok"}
    assert ok([]) == {"status": "ok", "data": []}
