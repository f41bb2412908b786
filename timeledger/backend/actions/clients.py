"""Client management. Admins only."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from ..errors import NotFound
from ..forms import client_from_dict, validate_client
from ..models import Client, User, new_id, utcnow
from ..policy import Action, ensure_allowed
from ..store import Workspace
from .base import Result, action, ok, require_valid

logger = logging.getLogger(__name__)


def _client_row(store: Workspace, client: Client) -> dict[str, Any]:
    row = asdict(client)
    row["project_count"] = sum(1 for p in store.projects.values() if p.client_id == client.id)
    return row


@action("Failed to create client")
def create_client(store: Workspace, actor: User, data: dict[str, Any]) -> Result:
    form = client_from_dict(data)
    require_valid(validate_client(form))
    ensure_allowed(actor, Action.MANAGE_CLIENTS)
    client = Client(
        id=new_id(),
        name=form.name,
        email=form.email,
        company=form.company,
        hourly_rate=form.hourly_rate,
    )
    store.clients[client.id] = client
    logger.info("Client %s created by %s", client.id, actor.id)
    return ok(client)


@action("Failed to update client")
def update_client(store: Workspace, actor: User, client_id: str, data: dict[str, Any]) -> Result:
    form = client_from_dict(data)
    require_valid(validate_client(form))
    ensure_allowed(actor, Action.MANAGE_CLIENTS)
    client = store.get_client(client_id)
    client.name = form.name
    client.email = form.email
    client.company = form.company
    client.hourly_rate = form.hourly_rate
    client.updated_at = utcnow()
    return ok(client)


@action("Failed to archive client")
def archive_client(store: Workspace, actor: User, client_id: str) -> Result:
    """Archive the client and every project under it."""
    ensure_allowed(actor, Action.MANAGE_CLIENTS)
    client = store.get_client(client_id)
    client.is_archived = True
    client.updated_at = utcnow()
    for project in store.projects.values():
        if project.client_id == client_id:
            project.status = "archived"
            project.updated_at = client.updated_at
    logger.info("Client %s archived by %s", client_id, actor.id)
    return ok()


@action("Failed to fetch clients", data=[])
def get_clients(store: Workspace, actor: User, archived: bool = False) -> Result:
    ensure_allowed(actor, Action.MANAGE_CLIENTS)
    rows = [c for c in store.clients.values() if c.is_archived == archived]
    rows.sort(key=lambda c: c.name.lower())
    return ok([_client_row(store, c) for c in rows])


@action("Failed to fetch client")
def get_client(store: Workspace, actor: User, client_id: str, archived: bool = False) -> Result:
    ensure_allowed(actor, Action.MANAGE_CLIENTS)
    client = store.clients.get(client_id)
    if client is None or client.is_archived != archived:
        raise NotFound("Client not found")
    row = asdict(client)
    row["projects"] = [p for p in store.projects.values() if p.client_id == client_id]
    return ok(row)
