from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import date as Date
from typing import Any

from dotenv import load_dotenv
from typing_extensions import TypedDict

from agents import Agent, ModelSettings, RunContextWrapper, function_tool, run_demo_loop

from .backend.actions.entries import delete_time_entry, get_time_entries
from .backend.actions.invoices import get_user_invoices
from .backend.actions.projects import get_active_projects
from .backend.config import Settings, load_from_env, load_settings
from .backend.durations import format_decimal_hours, format_duration, parse_duration
from .backend.editor import EditorEvent, EntryEditor
from .backend.exporters.csv import entry_rows, render_csv
from .backend.models import User, new_id
from .backend.parsers import (
    from_storage_instant,
    parse_entry_line,
    parse_iso_date,
    resolve_date_phrase,
)
from .backend.store import Workspace
from .backend.utils import week_project_totals
from .backend.utils import week_summary as summarize_week

logger = logging.getLogger(__name__)


@dataclass
class LedgerContext:
    """Per-session state: the workspace, who is acting, and the open form."""

    store: Workspace = field(default_factory=Workspace)
    actor: User | None = None
    settings: Settings = field(default_factory=Settings)
    editor: EntryEditor | None = None


class FieldChange(TypedDict):
    """One edit to the open entry form.

    Fields:
        field: One of date, project, duration, start_time, end_time, description, billable.
        value: New value as text (dates as YYYY-MM-DD or a phrase, billable as yes/no).
    """

    field: str
    value: str


_FIELD_NAMES = {
    "date": "date",
    "project": "project_id",
    "duration": "duration_text",
    "start_time": "start_time",
    "end_time": "end_time",
    "description": "description",
    "billable": "billable",
}


def _resolve_actor(store: Workspace, who: str | None) -> User:
    """Pick the acting user: TIMELEDGER_USER, else the first admin, else a local admin."""
    if who:
        found = store.find_user(who)
        if found:
            return found
        logger.warning("Unknown TIMELEDGER_USER %r; falling back", who)
    admin = next((u for u in store.users.values() if u.is_admin), None)
    if admin:
        return admin
    return store.add_user(User(id=new_id(), email="me@localhost", name="Me", role="admin"))


def _today(ctx: LedgerContext) -> Date | None:
    s = ctx.settings
    return resolve_date_phrase("today", timezone=s.timezone, base_date=s.base_date)


def _events(events: list[EditorEvent]) -> list[dict[str, Any]]:
    return [{"type": e.type, **e.payload} for e in events]


def _apply_changes(
    ctx: LedgerContext, editor: EntryEditor, changes: list[FieldChange]
) -> list[EditorEvent]:
    """Translate assistant-facing field names and values, then edit the form."""
    events: list[EditorEvent] = []
    for change in changes:
        name = _FIELD_NAMES.get(change.get("field", "").strip().lower())
        value: Any = change.get("value", "")
        if name is None:
            events.append(
                EditorEvent(type="error", payload={"message": f"Unknown field: {change.get('field')}"})
            )
            continue
        if name == "date":
            resolved = resolve_date_phrase(
                value, timezone=ctx.settings.timezone, base_date=ctx.settings.base_date
            )
            value = resolved.isoformat() if resolved else ""
        elif name == "project_id" and value:
            project = ctx.store.find_project(value)
            value = project.id if project else value
        elif name == "billable":
            value = str(value).strip().lower() in {"yes", "y", "true", "1", "billable"}
        events.extend(editor.set_field(name, value))
    return events


def _entry_summary(ctx: LedgerContext, entry: Any) -> dict[str, Any]:
    project = ctx.store.projects.get(entry.project_id) if entry.project_id else None
    return {
        "id": entry.id,
        "date": from_storage_instant(entry.date).isoformat(),
        "project": project.name if project else None,
        "duration": format_duration(entry.duration),
        "hours": format_decimal_hours(entry.duration),
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "billable": entry.billable,
        "description": entry.description,
    }


@function_tool
def list_my_projects(ctx: RunContextWrapper[LedgerContext]) -> dict[str, Any]:
    """List active projects the current user can log time to."""
    return get_active_projects(ctx.context.store, ctx.context.actor)


@function_tool
def resolve_date(ctx: RunContextWrapper[LedgerContext], phrase: str) -> str:
    """Resolve a relative or natural-language date to ISO YYYY-MM-DD.

    Args:
        phrase: A date like "today", "last friday", or "September 9 2025".
    Returns:
        ISO date string, or empty string if not understood.
    """
    s = ctx.context.settings
    resolved = resolve_date_phrase(phrase, timezone=s.timezone, base_date=s.base_date)
    return resolved.isoformat() if resolved else ""


@function_tool
def parse_duration_text(text: str) -> dict[str, Any]:
    """Check a duration such as "2.5h", "2h 30m", "90m", "1:30" or "150" (minutes).

    Args:
        text: The duration exactly as the user wrote it.
    """
    minutes = parse_duration(text)
    if minutes is None:
        return {"status": "error", "error": "Invalid duration format"}
    return {
        "status": "ok",
        "minutes": minutes,
        "display": format_duration(minutes),
        "hours": format_decimal_hours(minutes),
    }


@function_tool
def start_entry(
    ctx: RunContextWrapper[LedgerContext],
    date: str | None = None,
    entry_id: str | None = None,
) -> dict[str, Any]:
    """Open the entry form: a new entry (optionally on `date`) or an existing one by id.

    Args:
        date: Optional YYYY-MM-DD for a new entry. Defaults to today.
        entry_id: Id of one of the user's entries to edit instead.
    """
    c = ctx.context
    mine = c.store.entries_for(c.actor.id)
    if entry_id:
        entry = next((e for e in mine if e.id == entry_id), None)
        if entry is None:
            return {"status": "error", "error": "Time entry not found"}
        c.editor = EntryEditor(mine, entry=entry)
    else:
        c.editor = EntryEditor(mine, default_date=parse_iso_date(date) or _today(c))
    return {"status": "ok", "form": c.editor.snapshot()}


def _draft(ctx: LedgerContext, text: str) -> list[EditorEvent]:
    s = ctx.settings
    parsed = parse_entry_line(text, timezone=s.timezone, base_date=s.base_date)
    ctx.editor = EntryEditor(
        ctx.store.entries_for(ctx.actor.id), default_date=parsed["date"] or _today(ctx)
    )
    changes: list[FieldChange] = []
    if parsed["project"]:
        changes.append({"field": "project", "value": parsed["project"]})
    if parsed["duration"] is not None:
        changes.append({"field": "duration", "value": format_duration(parsed["duration"])})
    if parsed["description"]:
        changes.append({"field": "description", "value": parsed["description"]})
    events = _apply_changes(ctx, ctx.editor, changes)
    if parsed["date_text"] and parsed["date"] is None:
        # Leave the date empty rather than guessing today.
        events.extend(ctx.editor.set_field("date", None))
        events.append(
            EditorEvent(
                type="field_invalid",
                payload={"field": "date", "message": f"Could not resolve date: {parsed['date_text']}"},
            )
        )
    return events


@function_tool
def draft_entry(ctx: RunContextWrapper[LedgerContext], text: str) -> dict[str, Any]:
    """Open a new entry form pre-filled from one line of text.

    Args:
        text: e.g. "2h 30m on yesterday for Website: fixed the nav bar". Parts the
            line leaves out stay empty; fill them with set_entry_fields.
    """
    c = ctx.context
    events = _draft(c, text)
    return {
        "status": "ok",
        "events": _events(events),
        "form": c.editor.snapshot(),
        "problems": c.editor.problems(),
    }


@function_tool
def set_entry_fields(
    ctx: RunContextWrapper[LedgerContext], changes: list[FieldChange]
) -> dict[str, Any]:
    """Edit fields of the open entry form, in order.

    Start time, end time and duration keep each other consistent: the form
    derives the missing one. Changing project or date may report a collision
    with an existing entry; ask the user whether to cancel or switch_to_edit.

    Args:
        changes: Field edits with `field` and `value`.
    """
    c = ctx.context
    if c.editor is None:
        return {"status": "error", "error": "No entry form is open. Call start_entry first."}
    events = _apply_changes(c, c.editor, changes)
    return {
        "status": "ok",
        "events": _events(events),
        "form": c.editor.snapshot(),
        "preview": c.editor.preview(),
    }


@function_tool
def resolve_collision(ctx: RunContextWrapper[LedgerContext], choice: str) -> dict[str, Any]:
    """Resolve a reported collision.

    Args:
        choice: "cancel" to close the form, or "switch_to_edit" to edit the existing entry instead.
    """
    c = ctx.context
    if c.editor is None:
        return {"status": "error", "error": "No entry form is open."}
    events = c.editor.resolve(choice)
    return {"status": "ok", "events": _events(events), "form": c.editor.snapshot()}


@function_tool
def submit_entry(ctx: RunContextWrapper[LedgerContext]) -> dict[str, Any]:
    """Save the open entry form (create or update, depending on its mode)."""
    c = ctx.context
    if c.editor is None:
        return {"status": "error", "error": "No entry form is open."}
    events = c.editor.submit(c.store, c.actor)
    if not c.editor.state.open:
        c.editor = None
    status = "ok" if any(e.type == "saved" for e in events) else "error"
    return {"status": status, "events": _events(events)}


@function_tool
def list_entries(
    ctx: RunContextWrapper[LedgerContext],
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict[str, Any]:
    """List the user's time entries, newest first.

    Args:
        start_date: Optional inclusive YYYY-MM-DD lower bound.
        end_date: Optional inclusive YYYY-MM-DD upper bound.
    """
    c = ctx.context
    result = get_time_entries(c.store, c.actor, start_date=start_date, end_date=end_date)
    if result["status"] != "ok":
        return result
    return {"status": "ok", "entries": [_entry_summary(c, e) for e in result["data"]]}


@function_tool
def delete_entry(ctx: RunContextWrapper[LedgerContext], entry_id: str) -> dict[str, Any]:
    """Delete one of the user's time entries.

    Args:
        entry_id: Id of the entry to delete.
    """
    return delete_time_entry(ctx.context.store, ctx.context.actor, entry_id)


def _week_report(ctx: LedgerContext, day: Date) -> dict[str, Any]:
    mine = ctx.store.entries_for(ctx.actor.id)
    table = week_project_totals(mine, day)
    for row in table["projects"]:
        project = ctx.store.projects.get(row["project_id"]) if row["project_id"] else None
        row["project"] = project.name if project else None
    return {
        "status": "ok",
        "days": summarize_week(mine, day),
        "projects": table["projects"],
        "grand_total": format_duration(table["grand_total"]),
    }


@function_tool
def week_summary(ctx: RunContextWrapper[LedgerContext], date: str | None = None) -> dict[str, Any]:
    """Per-day and per-project totals for the Sunday-Saturday week containing `date`.

    Args:
        date: Optional YYYY-MM-DD inside the week. Defaults to today.
    """
    c = ctx.context
    return _week_report(c, parse_iso_date(date) or _today(c))


@function_tool
def my_invoices(ctx: RunContextWrapper[LedgerContext]) -> dict[str, Any]:
    """List the user's invoices with line items and totals."""
    return get_user_invoices(ctx.context.store, ctx.context.actor)


@function_tool
def export_csv(ctx: RunContextWrapper[LedgerContext]) -> str:
    """Export the user's time entries as CSV."""
    c = ctx.context
    csv_text = render_csv(entry_rows(c.store.entries_for(c.actor.id), c.store.projects))
    if c.settings.save_path:
        try:
            folder = os.path.dirname(c.settings.save_path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(c.settings.save_path, "w", encoding="utf-8") as f:
                f.write(csv_text)
        except OSError:
            # Tool output stays pure CSV; the failure goes to the log.
            logger.exception("Could not write CSV to %s", c.settings.save_path)
    return csv_text


TOOLS = [
    list_my_projects,
    resolve_date,
    parse_duration_text,
    start_entry,
    draft_entry,
    set_entry_fields,
    resolve_collision,
    submit_entry,
    list_entries,
    delete_entry,
    week_summary,
    my_invoices,
    export_csv,
]


def build_agent(model_name: str) -> Agent[LedgerContext]:
    instructions = (
        "You are a careful time-tracking assistant. Help the user log and fix time entries. "
        "An entry needs a date, a duration, a description of at least 10 characters, and optionally "
        "a project, start/end times and whether it is billable. "
        "Open a form with start_entry (or draft_entry when the user writes the whole entry in one line), "
        "then fill it with set_entry_fields. Durations may be written as "
        "'2.5h', '2h 30m', '90m', '1:30' or plain minutes; if the user gives start and end times the "
        "duration is derived for you, and vice versa. Do not invent values; ask one targeted question "
        "when something required is missing. "
        "If set_entry_fields reports a collision, tell the user an entry for that project and day already "
        "exists and ask whether to cancel or edit the existing entry, then call resolve_collision with "
        "'cancel' or 'switch_to_edit'. "
        "Use resolve_date for phrases like 'yesterday' or 'last friday'. Use list_my_projects to match "
        "project names. Call submit_entry once the form is complete and report the outcome briefly. "
        "Use list_entries, week_summary, my_invoices and export_csv when asked; when exporting, return "
        "only the CSV content."
    )
    return Agent[LedgerContext](
        name="Time Ledger Assistant",
        instructions=instructions,
        tools=list(TOOLS),
        model=model_name,
        model_settings=ModelSettings(),
    )


async def main() -> None:
    load_dotenv()
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not os.environ.get("OPENAI_API_KEY"):
        print("Warning: OPENAI_API_KEY is not set. Set it in your shell or a .env file.")

    store = load_from_env(
        default_path=os.path.join(os.path.dirname(__file__), "workspace.example.json")
    )
    context = LedgerContext(store=store, settings=settings)
    context.actor = _resolve_actor(store, settings.user)
    logger.info("Acting as %s", asdict(context.actor))

    agent = build_agent(settings.model)
    print("Time Ledger ready. Describe the time you want to log. Ctrl+C to exit.")
    await run_demo_loop(agent, stream=True, context=context)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
