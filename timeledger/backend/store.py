"""In-memory workspace store.

Stands in for the persistence engine: one dict per record type, keyed by id.
Lookups that must succeed raise `NotFound` with the message shown to users.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import NotFound
from .models import (
    Client,
    Invoice,
    Project,
    ProjectMember,
    TimeEntry,
    User,
    UserProfile,
)


@dataclass
class Workspace:
    users: dict[str, User] = field(default_factory=dict)
    clients: dict[str, Client] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)
    members: dict[str, ProjectMember] = field(default_factory=dict)
    entries: dict[str, TimeEntry] = field(default_factory=dict)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    invoices: dict[str, Invoice] = field(default_factory=dict)

    # --- users ---

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def get_user(self, user_id: str) -> User:
        try:
            return self.users[user_id]
        except KeyError:
            raise NotFound("User not found") from None

    def find_user(self, id_or_email: str) -> User | None:
        """Lookup by id, then by case-insensitive email."""
        key = (id_or_email or "").strip()
        if key in self.users:
            return self.users[key]
        low = key.lower()
        return next((u for u in self.users.values() if u.email.lower() == low), None)

    # --- clients / projects ---

    def get_client(self, client_id: str) -> Client:
        try:
            return self.clients[client_id]
        except KeyError:
            raise NotFound("Client not found") from None

    def get_project(self, project_id: str) -> Project:
        try:
            return self.projects[project_id]
        except KeyError:
            raise NotFound("Project not found") from None

    def find_project(self, id_or_name: str) -> Project | None:
        key = (id_or_name or "").strip()
        if key in self.projects:
            return self.projects[key]
        low = key.lower()
        return next((p for p in self.projects.values() if p.name.lower() == low), None)

    # --- memberships ---

    def get_member(self, member_id: str) -> ProjectMember:
        try:
            return self.members[member_id]
        except KeyError:
            raise NotFound("Project member not found") from None

    def find_membership(self, project_id: str, user_id: str) -> ProjectMember | None:
        return next(
            (
                m
                for m in self.members.values()
                if m.project_id == project_id and m.user_id == user_id
            ),
            None,
        )

    def project_members(self, project_id: str) -> list[ProjectMember]:
        rows = [m for m in self.members.values() if m.project_id == project_id]
        return sorted(rows, key=lambda m: m.created_at)

    # --- entries ---

    def get_entry(self, entry_id: str) -> TimeEntry:
        try:
            return self.entries[entry_id]
        except KeyError:
            raise NotFound("Time entry not found") from None

    def entries_for(self, user_id: str) -> list[TimeEntry]:
        return [e for e in self.entries.values() if e.user_id == user_id]

    # --- profiles / invoices ---

    def profile_for(self, user_id: str) -> UserProfile | None:
        return next((p for p in self.profiles.values() if p.user_id == user_id), None)

    def get_profile(self, profile_id: str) -> UserProfile:
        try:
            return self.profiles[profile_id]
        except KeyError:
            raise NotFound("Profile not found") from None

    def get_invoice(self, invoice_id: str) -> Invoice:
        try:
            return self.invoices[invoice_id]
        except KeyError:
            raise NotFound("Invoice not found") from None
