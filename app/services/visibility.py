"""
Role/position visibility shared by leaderboards, announcements, links,
calendar events and training modules.
"""
from typing import Iterable, List, Optional, TypeVar

from app.core.permissions import can_access_admin_features

T = TypeVar("T")


def _value(item) -> Optional[str]:
    return getattr(item, "value", item)


def is_visible(resource, caller_role, caller_position, caller_is_manager: bool) -> bool:
    """
    Decide whether `resource` is visible to a caller.

    `resource` exposes `visible_to_roles` and `visible_to_positions`; an empty
    list leaves that dimension unrestricted. Managers and admins see
    everything. A caller without a position never passes a non-empty position
    restriction.
    """
    if caller_is_manager:
        return True

    roles = [_value(r) for r in (resource.visible_to_roles or [])]
    positions = [_value(p) for p in (resource.visible_to_positions or [])]
    role = _value(caller_role)
    position = _value(caller_position)

    role_ok = not roles or role in roles
    position_ok = not positions or (position is not None and position in positions)
    return role_ok and position_ok


def is_visible_to(resource, user) -> bool:
    return is_visible(resource, user.role, user.position, can_access_admin_features(user))


def filter_visible(resources: Iterable[T], user) -> List[T]:
    manager = can_access_admin_features(user)
    return [r for r in resources if is_visible(r, user.role, user.position, manager)]


def audience_matches(user, roles, positions) -> bool:
    """Same rule as `is_visible` without the manager bypass; used to pick notification recipients."""
    roles = [_value(r) for r in (roles or [])]
    positions = [_value(p) for p in (positions or [])]
    if roles and user.role not in roles:
        return False
    if positions and (user.position is None or user.position not in positions):
        return False
    return True
