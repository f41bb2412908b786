"""Records held by the workspace store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

ROLES = ("admin", "member")
MEMBER_ROLES = ("owner", "manager", "member")
PROJECT_STATUSES = ("active", "archived", "completed")
DEFAULT_PROJECT_COLOR = "#6366f1"


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    id: str
    email: str
    name: str | None = None
    role: str = "member"  # admin or member

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass
class Client:
    id: str
    name: str
    email: str | None = None
    company: str | None = None
    hourly_rate: float | None = None
    is_archived: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Project:
    id: str
    name: str
    client_id: str
    user_id: str  # owner
    description: str | None = None
    budget_amount: float | None = None
    status: str = "active"
    color: str = DEFAULT_PROJECT_COLOR
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class ProjectMember:
    id: str
    project_id: str
    user_id: str
    payout_rate: float
    charge_rate: float
    role: str = "member"  # owner, manager or member
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class TimeEntry:
    """Minutes worked by one user on one calendar day.

    `date` is the UTC-midnight instant of the local calendar day the user
    picked; read it back with `parsers.from_storage_instant`.
    """

    id: str
    user_id: str
    date: datetime
    duration: int
    description: str
    project_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    billable: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class UserProfile:
    id: str
    user_id: str
    phone: str
    address: str
    birth_date: date


@dataclass
class LineItem:
    id: str
    invoice_id: str
    name: str
    summary: str
    amount: float


@dataclass
class Invoice:
    id: str
    user_id: str
    line_items: list[LineItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def number(self) -> str:
        return self.id[:8].upper()

    @property
    def total(self) -> float:
        return round(sum(item.amount for item in self.line_items), 2)
