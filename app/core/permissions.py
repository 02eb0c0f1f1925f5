"""
Capability checks for a signed-in user.

Admins (role) and sales managers (position) share the elevated capabilities;
user management stays admin-only.
"""
from fastapi import Depends, HTTPException, status

from app.core.auth import get_current_user
from app.models.enums import UserRole, SalesPosition


def is_admin(user) -> bool:
    return user is not None and user.role == UserRole.ADMIN.value


def is_manager(user) -> bool:
    return user is not None and user.position == SalesPosition.MANAGER.value


def can_access_admin_features(user) -> bool:
    return is_admin(user) or is_manager(user)


def can_manage_users(user) -> bool:
    return is_admin(user)


def can_manage_leaderboards(user) -> bool:
    return is_admin(user) or is_manager(user)


def can_manage_communications(user) -> bool:
    return can_access_admin_features(user)


def can_manage_events(user) -> bool:
    return can_access_admin_features(user)


def can_edit_event(user, created_by_id) -> bool:
    if can_manage_events(user):
        return True
    return created_by_id is not None and user.id == created_by_id


def can_edit_training_content(user) -> bool:
    return can_access_admin_features(user)


def can_manage_onboarding(user) -> bool:
    return can_access_admin_features(user)


def can_view_user(user, user_id: int) -> bool:
    return can_access_admin_features(user) or user.id == user_id


def require_permission(check, detail: str = "You don't have permission to perform this action"):
    """Dependency factory: yields the current user if `check(user)` passes, else 403."""

    async def dependency(current_user = Depends(get_current_user)):
        if not check(current_user):
            raise HTTPException(status.HTTP_403_FORBIDDEN, detail)
        return current_user

    return dependency


get_current_admin = require_permission(is_admin, "Admin access required")
get_leaderboard_manager = require_permission(
    can_manage_leaderboards, "You don't have permission to manage leaderboards"
)
get_communications_manager = require_permission(
    can_manage_communications, "You don't have permission to manage communications"
)
get_training_editor = require_permission(
    can_edit_training_content, "Forbidden: Requires admin privileges"
)
get_onboarding_manager = require_permission(
    can_manage_onboarding, "You don't have permission to manage onboarding"
)
