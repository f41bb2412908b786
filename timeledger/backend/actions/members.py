"""Project memberships and their payout/charge rates."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import Conflict, ValidationFailed
from ..forms import member_from_dict, validate_member
from ..models import MEMBER_ROLES, ProjectMember, User, new_id, utcnow
from ..policy import Action, ensure_allowed
from ..store import Workspace
from .base import Result, action, ok, require_valid

logger = logging.getLogger(__name__)


def _member_row(store: Workspace, member: ProjectMember) -> dict[str, Any]:
    user = store.users.get(member.user_id)
    return {
        "id": member.id,
        "project_id": member.project_id,
        "user_id": member.user_id,
        "role": member.role,
        "payout_rate": member.payout_rate,
        "charge_rate": member.charge_rate,
        "is_active": member.is_active,
        "user": {"id": user.id, "name": user.name, "email": user.email} if user else None,
    }


@action("Failed to add project member")
def add_project_member(store: Workspace, actor: User, data: dict[str, Any]) -> Result:
    form = member_from_dict(data)
    require_valid(validate_member(form))
    project = store.get_project(form.project_id)
    ensure_allowed(actor, Action.MANAGE_MEMBERS, project)
    store.get_user(form.user_id)
    if store.find_membership(form.project_id, form.user_id):
        raise Conflict("User is already a member of this project")
    member = ProjectMember(
        id=new_id(),
        project_id=form.project_id,
        user_id=form.user_id,
        payout_rate=float(form.payout_rate or 0),
        charge_rate=float(form.charge_rate or 0),
        role=form.role,
    )
    store.members[member.id] = member
    logger.info("User %s added to project %s", member.user_id, member.project_id)
    return ok(_member_row(store, member))


@action("Failed to update project member")
def update_project_member(
    store: Workspace,
    actor: User,
    member_id: str,
    *,
    payout_rate: float | None = None,
    charge_rate: float | None = None,
    role: str | None = None,
    is_active: bool | None = None,
) -> Result:
    """Partial update: only the arguments given are changed."""
    member = store.get_member(member_id)
    ensure_allowed(actor, Action.MANAGE_MEMBERS, store.get_project(member.project_id))
    problems: list[str] = []
    if payout_rate is not None and payout_rate <= 0:
        problems.append("Payout rate must be greater than zero")
    if charge_rate is not None and charge_rate <= 0:
        problems.append("Charge rate must be greater than zero")
    if role is not None and role not in MEMBER_ROLES:
        problems.append(f"Role must be one of: {', '.join(MEMBER_ROLES)}")
    if problems:
        raise ValidationFailed(problems)
    if payout_rate is not None:
        member.payout_rate = payout_rate
    if charge_rate is not None:
        member.charge_rate = charge_rate
    if role is not None:
        member.role = role
    if is_active is not None:
        member.is_active = is_active
    member.updated_at = utcnow()
    return ok(_member_row(store, member))


@action("Failed to remove project member")
def remove_project_member(store: Workspace, actor: User, member_id: str) -> Result:
    member = store.get_member(member_id)
    ensure_allowed(actor, Action.MANAGE_MEMBERS, store.get_project(member.project_id))
    del store.members[member_id]
    logger.info("User %s removed from project %s", member.user_id, member.project_id)
    return ok()


@action("Failed to fetch project members", data=[])
def get_project_members(store: Workspace, actor: User, project_id: str) -> Result:
    project = store.get_project(project_id)
    ensure_allowed(
        actor,
        Action.VIEW_MEMBERS,
        project,
        membership=store.find_membership(project_id, actor.id),
    )
    return ok([_member_row(store, m) for m in store.project_members(project_id)])


@action("Failed to fetch users", data=[])
def get_all_users(store: Workspace, actor: User) -> Result:
    ensure_allowed(actor, Action.LIST_USERS)
    users = sorted(store.users.values(), key=lambda u: (u.name or "").lower())
    return ok([{"id": u.id, "name": u.name, "email": u.email} for u in users])
