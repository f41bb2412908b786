from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

from .durations import parse_duration
from .models import (
    Client,
    Invoice,
    LineItem,
    Project,
    ProjectMember,
    TimeEntry,
    User,
    new_id,
)
from .parsers import parse_iso_date, to_storage_instant
from .store import Workspace

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    config_path: str | None = None
    user: str | None = None
    timezone: str | None = None
    base_date: str | None = None
    save_path: str | None = None
    model: str = "gpt-4o-mini"
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """Read settings from TIMELEDGER_* / OPENAI_MODEL environment variables."""
    return Settings(
        config_path=os.environ.get("TIMELEDGER_CONFIG_PATH") or None,
        user=os.environ.get("TIMELEDGER_USER") or None,
        timezone=os.environ.get("TIMELEDGER_TZ") or None,
        base_date=os.environ.get("TIMELEDGER_BASE_DATE") or None,
        save_path=os.environ.get("TIMELEDGER_SAVE_PATH") or None,
        model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        log_level=(os.environ.get("TIMELEDGER_LOG_LEVEL") or "WARNING").upper(),
    )


def _str(x: dict[str, Any], key: str, default: str = "") -> str:
    value = x.get(key)
    return str(value) if value is not None else default


def _opt(x: dict[str, Any], key: str) -> str | None:
    value = x.get(key)
    return str(value) if value not in (None, "") else None


def _float(x: dict[str, Any], key: str) -> float | None:
    try:
        return float(x[key]) if x.get(key) is not None else None
    except (TypeError, ValueError):
        return None


def _rows(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    return [x for x in (data.get(key) or []) if isinstance(x, dict)]


def build_workspace(data: dict[str, Any]) -> Workspace:
    """Build a workspace from seed data.

    Users and projects may be referenced by id, email or name. Rows that
    reference unknown users or carry unusable values are skipped with a
    warning.
    """
    ws = Workspace()

    for x in data.get("users") or []:
        if isinstance(x, str):
            ws.add_user(User(id=new_id(), email=x))
        elif isinstance(x, dict):
            ws.add_user(
                User(
                    id=_str(x, "id") or new_id(),
                    email=_str(x, "email"),
                    name=_opt(x, "name"),
                    role="admin" if x.get("role") == "admin" else "member",
                )
            )

    for x in _rows(data, "clients"):
        client = Client(
            id=_str(x, "id") or new_id(),
            name=_str(x, "name"),
            email=_opt(x, "email"),
            company=_opt(x, "company"),
            hourly_rate=_float(x, "hourly_rate"),
            is_archived=bool(x.get("is_archived", False)),
        )
        ws.clients[client.id] = client

    for x in _rows(data, "projects"):
        owner = ws.find_user(_str(x, "owner"))
        if owner is None:
            logger.warning("Skipping project %r: unknown owner", x.get("name"))
            continue
        project = Project(
            id=_str(x, "id") or new_id(),
            name=_str(x, "name"),
            client_id=_str(x, "client_id"),
            user_id=owner.id,
            description=_opt(x, "description"),
            budget_amount=_float(x, "budget_amount"),
            status=_str(x, "status", "active"),
            color=_str(x, "color", "#6366f1"),
        )
        ws.projects[project.id] = project

    for x in _rows(data, "members"):
        project = ws.find_project(_str(x, "project"))
        user = ws.find_user(_str(x, "user"))
        if project is None or user is None:
            logger.warning("Skipping membership %r", x)
            continue
        member = ProjectMember(
            id=_str(x, "id") or new_id(),
            project_id=project.id,
            user_id=user.id,
            payout_rate=_float(x, "payout_rate") or 0.0,
            charge_rate=_float(x, "charge_rate") or 0.0,
            role=_str(x, "role", "member"),
            is_active=bool(x.get("is_active", True)),
        )
        ws.members[member.id] = member

    for x in _rows(data, "entries"):
        user = ws.find_user(_str(x, "user"))
        day = parse_iso_date(_opt(x, "date"))
        raw = x.get("duration")
        minutes = raw if isinstance(raw, int) else parse_duration(_str(x, "duration"))
        if user is None or day is None or not minutes:
            logger.warning("Skipping entry %r", x)
            continue
        project = ws.find_project(_str(x, "project")) if x.get("project") else None
        entry = TimeEntry(
            id=_str(x, "id") or new_id(),
            user_id=user.id,
            date=to_storage_instant(day),
            duration=minutes,
            description=_str(x, "description"),
            project_id=project.id if project else None,
            start_time=_opt(x, "start_time"),
            end_time=_opt(x, "end_time"),
            billable=bool(x.get("billable", False)),
        )
        ws.entries[entry.id] = entry

    for x in _rows(data, "invoices"):
        user = ws.find_user(_str(x, "user"))
        if user is None:
            logger.warning("Skipping invoice %r: unknown user", x.get("id"))
            continue
        invoice = Invoice(id=_str(x, "id") or new_id(), user_id=user.id)
        for item in x.get("line_items") or []:
            if isinstance(item, dict):
                invoice.line_items.append(
                    LineItem(
                        id=_str(item, "id") or new_id(),
                        invoice_id=invoice.id,
                        name=_str(item, "name"),
                        summary=_str(item, "summary"),
                        amount=_float(item, "amount") or 0.0,
                    )
                )
        ws.invoices[invoice.id] = invoice

    return ws


def load_workspace(path: str) -> Workspace:
    with open(path, encoding="utf-8") as f:
        return build_workspace(json.load(f))


def load_from_env(default_path: str | None = None) -> Workspace:
    """Load the seed named by TIMELEDGER_CONFIG_PATH (or `default_path`).

    A missing path or file gives an empty workspace.
    """
    path = os.environ.get("TIMELEDGER_CONFIG_PATH") or default_path
    if not path or not os.path.isfile(path):
        return Workspace()
    return load_workspace(path)
