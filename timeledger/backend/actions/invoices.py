"""Per-user invoices made of simple line items."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..durations import format_decimal_hours
from ..errors import NotFound, ValidationFailed
from ..models import Invoice, LineItem, User, new_id
from ..parsers import from_storage_instant, parse_iso_date
from ..policy import Action, ensure_allowed
from ..store import Workspace
from .base import Result, action, ok

logger = logging.getLogger(__name__)


def invoice_row(invoice: Invoice) -> dict[str, Any]:
    return {
        "id": invoice.id,
        "number": invoice.number,
        "user_id": invoice.user_id,
        "line_items": [
            {"id": i.id, "name": i.name, "summary": i.summary, "amount": i.amount}
            for i in invoice.line_items
        ],
        "total": invoice.total,
    }


@action("Failed to load invoices", data=[])
def get_user_invoices(store: Workspace, actor: User, user_id: str | None = None) -> Result:
    """Invoices addressed to `user_id` (the actor by default), newest first."""
    target = user_id or actor.id
    if target != actor.id:
        ensure_allowed(actor, Action.MANAGE_INVOICES)
    rows = [inv for inv in store.invoices.values() if inv.user_id == target]
    rows.sort(key=lambda inv: inv.created_at, reverse=True)
    return ok([invoice_row(inv) for inv in rows])


@action("Failed to load invoice")
def get_invoice(store: Workspace, actor: User, invoice_id: str) -> Result:
    invoice = store.get_invoice(invoice_id)
    ensure_allowed(actor, Action.READ_INVOICE, invoice)
    return ok(invoice_row(invoice))


@action("Failed to create invoice")
def create_invoice(store: Workspace, actor: User, user_id: str) -> Result:
    ensure_allowed(actor, Action.MANAGE_INVOICES)
    store.get_user(user_id)
    invoice = Invoice(id=new_id(), user_id=user_id)
    store.invoices[invoice.id] = invoice
    logger.info("Invoice %s created for %s", invoice.number, user_id)
    return ok(invoice_row(invoice))


@action("Failed to add line item")
def add_line_item(
    store: Workspace,
    actor: User,
    invoice_id: str,
    *,
    name: str,
    summary: str = "",
    amount: float,
) -> Result:
    ensure_allowed(actor, Action.MANAGE_INVOICES)
    invoice = store.get_invoice(invoice_id)
    if not (name or "").strip():
        raise ValidationFailed(["Name is required"])
    item = LineItem(
        id=new_id(),
        invoice_id=invoice.id,
        name=name.strip(),
        summary=(summary or "").strip(),
        amount=round(float(amount), 2),
    )
    invoice.line_items.append(item)
    return ok(invoice_row(invoice))


@action("Failed to build line item")
def build_line_item(
    store: Workspace,
    actor: User,
    *,
    user_id: str,
    project_id: str,
    start_date: str | date,
    end_date: str | date,
) -> Result:
    """Price a user's billable minutes on a project at their charge rate.

    Returns name/summary/amount ready for `add_line_item`; nothing is stored.
    """
    ensure_allowed(actor, Action.MANAGE_INVOICES)
    project = store.get_project(project_id)
    membership = store.find_membership(project_id, user_id)
    if membership is None:
        raise NotFound("Project member not found")
    start, end = parse_iso_date(start_date), parse_iso_date(end_date)
    if start is None or end is None:
        raise ValidationFailed(["Invalid date"])
    minutes = sum(
        e.duration
        for e in store.entries_for(user_id)
        if e.project_id == project_id
        and e.billable
        and start <= from_storage_instant(e.date) <= end
    )
    hours = format_decimal_hours(minutes)
    return ok(
        {
            "name": project.name,
            "summary": f"{hours}h billable, {start.isoformat()} to {end.isoformat()}",
            "amount": round(minutes / 60 * membership.charge_rate, 2),
        }
    )
