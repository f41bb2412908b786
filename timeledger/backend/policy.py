"""Role and ownership rules, consulted by every action that reads or mutates.

Two facts drive every decision: is the actor an admin, and does the actor own
(or actively belong to) the resource. `is_allowed` answers; `ensure_allowed`
raises `Unauthorized` with the message shown to the user.
"""

from __future__ import annotations

import logging
from enum import Enum

from .errors import Unauthorized
from .models import Invoice, Project, ProjectMember, TimeEntry, User, UserProfile

logger = logging.getLogger(__name__)


class Action(str, Enum):
    MANAGE_CLIENTS = "clients.manage"
    LIST_USERS = "users.list"
    EDIT_PROJECT = "project.edit"
    MANAGE_MEMBERS = "project.members.manage"
    VIEW_MEMBERS = "project.members.view"
    LOG_TIME = "project.log_time"
    EDIT_ENTRY = "entry.edit"
    EDIT_PROFILE = "profile.edit"
    READ_INVOICE = "invoice.read"
    MANAGE_INVOICES = "invoice.manage"


_DENIED_MESSAGES = {
    Action.LIST_USERS: "Only admins can view all users",
    Action.MANAGE_MEMBERS: "You don't have permission to manage this project",
    Action.VIEW_MEMBERS: "You don't have access to this project",
    Action.LOG_TIME: "You must be an active member of this project to log time to it",
    Action.EDIT_PROFILE: "Unauthorized to update this profile",
}


def _owns(actor: User, resource: object | None) -> bool:
    if isinstance(resource, (TimeEntry, Project, UserProfile, Invoice)):
        return resource.user_id == actor.id
    return False


def _active_member(actor: User, membership: ProjectMember | None) -> bool:
    return bool(membership and membership.user_id == actor.id and membership.is_active)


def is_allowed(
    actor: User | None,
    action: Action,
    resource: object | None = None,
    *,
    membership: ProjectMember | None = None,
) -> bool:
    """Decide whether `actor` may perform `action` on `resource`.

    `membership` is the actor's membership row for the project involved
    (LOG_TIME, VIEW_MEMBERS), when one exists.
    """
    if actor is None:
        return False
    if action in (Action.MANAGE_CLIENTS, Action.LIST_USERS, Action.MANAGE_INVOICES):
        return actor.is_admin
    if action is Action.MANAGE_MEMBERS:
        return actor.is_admin or _owns(actor, resource)
    if action is Action.VIEW_MEMBERS:
        return actor.is_admin or _owns(actor, resource) or _active_member(actor, membership)
    if action is Action.LOG_TIME:
        return _active_member(actor, membership)
    if action is Action.READ_INVOICE:
        return actor.is_admin or _owns(actor, resource)
    # Projects, entries and profiles: the owner only.
    return _owns(actor, resource)


def ensure_allowed(
    actor: User | None,
    action: Action,
    resource: object | None = None,
    *,
    membership: ProjectMember | None = None,
) -> None:
    if is_allowed(actor, action, resource, membership=membership):
        return
    logger.warning(
        "Denied %s for user %s", action.value, getattr(actor, "id", None) or "<anonymous>"
    )
    raise Unauthorized(_DENIED_MESSAGES.get(action, "Unauthorized"))
