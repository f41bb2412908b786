"""Project CRUD. The creating user owns the project."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from ..forms import project_from_dict, validate_project
from ..models import Project, User, new_id, utcnow
from ..policy import Action, ensure_allowed
from ..store import Workspace
from .base import Result, action, ok, require_valid

logger = logging.getLogger(__name__)


def _is_active_member(store: Workspace, project_id: str, user_id: str) -> bool:
    membership = store.find_membership(project_id, user_id)
    return bool(membership and membership.is_active)


@action("Failed to create project")
def create_project(store: Workspace, actor: User, data: dict[str, Any]) -> Result:
    form = project_from_dict(data)
    require_valid(validate_project(form))
    store.get_client(form.client_id)
    project = Project(
        id=new_id(),
        name=form.name,
        client_id=form.client_id,
        user_id=actor.id,
        description=form.description,
        budget_amount=form.budget_amount,
        status=form.status,
        color=form.color,
    )
    store.projects[project.id] = project
    logger.info("Project %s created by %s", project.id, actor.id)
    return ok(project)


@action("Failed to update project")
def update_project(store: Workspace, actor: User, project_id: str, data: dict[str, Any]) -> Result:
    form = project_from_dict(data)
    require_valid(validate_project(form))
    project = store.get_project(project_id)
    ensure_allowed(actor, Action.EDIT_PROJECT, project)
    store.get_client(form.client_id)
    project.name = form.name
    project.client_id = form.client_id
    project.description = form.description
    project.budget_amount = form.budget_amount
    project.status = form.status
    project.color = form.color
    project.updated_at = utcnow()
    return ok(project)


@action("Failed to delete project")
def delete_project(store: Workspace, actor: User, project_id: str) -> Result:
    """Delete the project with its memberships. Entries become unassigned."""
    project = store.get_project(project_id)
    ensure_allowed(actor, Action.EDIT_PROJECT, project)
    del store.projects[project_id]
    for member_id in [m.id for m in store.members.values() if m.project_id == project_id]:
        del store.members[member_id]
    for entry in store.entries.values():
        if entry.project_id == project_id:
            entry.project_id = None
    logger.info("Project %s deleted by %s", project_id, actor.id)
    return ok()


@action("Failed to fetch projects", data=[])
def get_projects(store: Workspace, actor: User) -> Result:
    """Projects the actor owns or actively belongs to, by name."""
    rows = [
        p
        for p in store.projects.values()
        if p.user_id == actor.id or _is_active_member(store, p.id, actor.id)
    ]
    rows.sort(key=lambda p: p.name.lower())
    out = []
    for p in rows:
        row = asdict(p)
        row["entry_count"] = sum(1 for e in store.entries.values() if e.project_id == p.id)
        row["member_count"] = len(store.project_members(p.id))
        out.append(row)
    return ok(out)


@action("Failed to fetch projects", data=[])
def get_active_projects(store: Workspace, actor: User) -> Result:
    """Active projects the actor may log time to (dropdown choices)."""
    rows = [
        p
        for p in store.projects.values()
        if p.status == "active" and _is_active_member(store, p.id, actor.id)
    ]
    rows.sort(key=lambda p: p.name.lower())
    return ok(
        [
            {
                "id": p.id,
                "name": p.name,
                "color": p.color,
                "client": getattr(store.clients.get(p.client_id), "name", None),
            }
            for p in rows
        ]
    )


@action("Failed to fetch project")
def get_project(store: Workspace, actor: User, project_id: str) -> Result:
    project = store.get_project(project_id)
    ensure_allowed(actor, Action.EDIT_PROJECT, project)
    row = asdict(project)
    row["client"] = store.clients.get(project.client_id)
    row["members"] = store.project_members(project_id)
    return ok(row)
