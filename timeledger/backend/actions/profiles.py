"""User profile and display name."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import Conflict
from ..forms import profile_from_dict, validate_full_name, validate_profile
from ..models import User, UserProfile, new_id
from ..policy import Action, ensure_allowed
from ..store import Workspace
from .base import Result, action, ok, require_valid

logger = logging.getLogger(__name__)


@action("Failed to create profile")
def create_profile(store: Workspace, actor: User, data: dict[str, Any]) -> Result:
    form = profile_from_dict(data)
    require_valid(validate_profile(form))
    if store.profile_for(actor.id):
        raise Conflict("Profile already exists for this user")
    profile = UserProfile(
        id=new_id(),
        user_id=actor.id,
        phone=form.phone_number,
        address=form.address,
        birth_date=form.birth_date,  # type: ignore[arg-type]
    )
    store.profiles[profile.id] = profile
    return ok(profile)


@action("Failed to update profile")
def update_profile(store: Workspace, actor: User, profile_id: str, data: dict[str, Any]) -> Result:
    form = profile_from_dict(data)
    require_valid(validate_profile(form))
    ensure_allowed(actor, Action.EDIT_PROFILE, store.profiles.get(profile_id))
    profile = store.get_profile(profile_id)
    profile.phone = form.phone_number
    profile.address = form.address
    profile.birth_date = form.birth_date  # type: ignore[assignment]
    return ok(profile)


@action("Failed to fetch user profile")
def get_user_profile(store: Workspace, actor: User) -> Result:
    return {"status": "ok", "data": store.profile_for(actor.id)}


@action("Failed to update user name")
def update_user_name(store: Workspace, actor: User, full_name: str) -> Result:
    """Set the actor's display name (at least 3 characters)."""
    require_valid(validate_full_name(full_name))
    user = store.get_user(actor.id)
    user.name = full_name.strip()
    logger.info("User %s renamed", user.id)
    return ok(user)
