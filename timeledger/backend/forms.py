"""Input shapes and validation for every form the workspace accepts.

Each form is a dataclass built by a lenient `*_from_dict` coercer and checked
by a validator that returns a list of human-readable problems (empty when
valid). Actions raise `ValidationFailed` with that list.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from .durations import is_clock, parse_duration
from .models import MEMBER_ROLES, PROJECT_STATUSES, DEFAULT_PROJECT_COLOR
from .parsers import parse_iso_date

MIN_DESCRIPTION_LENGTH = 10
MIN_BUDGET_AMOUNT = 1000

_EMAIL = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _opt_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class TimeEntryForm:
    """A submitted time entry. `date` is the local calendar day picked."""

    date: date | None
    duration: int | None
    description: str
    project_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    billable: bool = False


def time_entry_from_dict(data: dict[str, Any]) -> TimeEntryForm:
    """Coerce a loose dict; `duration` may be minutes or free text like "2h 30m"."""
    raw = data.get("duration")
    if isinstance(raw, bool):
        duration = None
    elif isinstance(raw, (int, float)):
        duration = int(raw)
    else:
        duration = parse_duration(raw)
    return TimeEntryForm(
        date=parse_iso_date(data.get("date")),
        duration=duration,
        description=str(data.get("description") or "").strip(),
        project_id=_opt_str(data.get("project_id")),
        start_time=_opt_str(data.get("start_time")),
        end_time=_opt_str(data.get("end_time")),
        billable=bool(data.get("billable", False)),
    )


def validate_time_entry(form: TimeEntryForm) -> list[str]:
    issues: list[str] = []
    if form.date is None:
        issues.append("Invalid date")
    if form.duration is None:
        issues.append("Invalid duration format")
    elif form.duration < 1:
        issues.append("Duration must be at least 1 minute")
    if form.start_time and not is_clock(form.start_time):
        issues.append("Start time must be HH:MM")
    if form.end_time and not is_clock(form.end_time):
        issues.append("End time must be HH:MM")
    if len(form.description) < MIN_DESCRIPTION_LENGTH:
        issues.append("Description is required")
    return issues


@dataclass
class ClientForm:
    name: str
    email: str | None = None
    company: str | None = None
    hourly_rate: float | None = None


def client_from_dict(data: dict[str, Any]) -> ClientForm:
    return ClientForm(
        name=str(data.get("name") or "").strip(),
        email=_opt_str(data.get("email")),
        company=_opt_str(data.get("company")),
        hourly_rate=_opt_float(data.get("hourly_rate")),
    )


def validate_client(form: ClientForm) -> list[str]:
    issues: list[str] = []
    if not form.name:
        issues.append("Name is required")
    if form.email and not _EMAIL.fullmatch(form.email):
        issues.append("Invalid email")
    return issues


@dataclass
class ProjectForm:
    name: str
    client_id: str
    description: str | None = None
    budget_amount: float | None = None
    status: str = "active"
    color: str = DEFAULT_PROJECT_COLOR


def project_from_dict(data: dict[str, Any]) -> ProjectForm:
    return ProjectForm(
        name=str(data.get("name") or "").strip(),
        client_id=str(data.get("client_id") or "").strip(),
        description=_opt_str(data.get("description")),
        budget_amount=_opt_float(data.get("budget_amount")),
        status=str(data.get("status") or "active"),
        color=str(data.get("color") or DEFAULT_PROJECT_COLOR),
    )


def validate_project(form: ProjectForm) -> list[str]:
    issues: list[str] = []
    if not form.name:
        issues.append("Name is required")
    if not form.client_id:
        issues.append("Client is required")
    if form.budget_amount is not None and form.budget_amount < MIN_BUDGET_AMOUNT:
        issues.append("Add a reasonable amount")
    if form.status not in PROJECT_STATUSES:
        issues.append(f"Status must be one of: {', '.join(PROJECT_STATUSES)}")
    return issues


@dataclass
class MemberForm:
    project_id: str
    user_id: str
    payout_rate: float | None
    charge_rate: float | None
    role: str = "member"


def member_from_dict(data: dict[str, Any]) -> MemberForm:
    return MemberForm(
        project_id=str(data.get("project_id") or ""),
        user_id=str(data.get("user_id") or ""),
        payout_rate=_opt_float(data.get("payout_rate")),
        charge_rate=_opt_float(data.get("charge_rate")),
        role=str(data.get("role") or "member"),
    )


def validate_member(form: MemberForm) -> list[str]:
    issues: list[str] = []
    if not form.project_id:
        issues.append("Project is required")
    if not form.user_id:
        issues.append("User is required")
    if form.payout_rate is None or form.payout_rate <= 0:
        issues.append("Payout rate must be greater than zero")
    if form.charge_rate is None or form.charge_rate <= 0:
        issues.append("Charge rate must be greater than zero")
    if form.role not in MEMBER_ROLES:
        issues.append(f"Role must be one of: {', '.join(MEMBER_ROLES)}")
    return issues


@dataclass
class ProfileForm:
    first_name: str
    last_name: str
    phone_number: str
    address: str
    birth_date: date | None


def profile_from_dict(data: dict[str, Any]) -> ProfileForm:
    return ProfileForm(
        first_name=str(data.get("first_name") or "").strip(),
        last_name=str(data.get("last_name") or "").strip(),
        phone_number=str(data.get("phone_number") or "").strip(),
        address=str(data.get("address") or "").strip(),
        birth_date=parse_iso_date(data.get("birth_date")),
    )


def validate_profile(form: ProfileForm) -> list[str]:
    issues: list[str] = []
    if len(form.first_name) < 1:
        issues.append("First name is required")
    if len(form.last_name) < 2:
        issues.append("Last name is required")
    if len(form.phone_number) < 8:
        issues.append("Phone number is required")
    if len(form.address) < 10:
        issues.append("Address is required")
    if form.birth_date is None:
        issues.append("Invalid date")
    return issues


def validate_full_name(full_name: str) -> list[str]:
    return [] if len((full_name or "").strip()) >= 3 else ["Full name is required"]
