"""
Maps bulk-import rows to user ids.

All referenced ids and emails are looked up with a single query; a row that
cannot be resolved is reported, never raised, so the rest of the batch still
runs.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


def parse_user_id(value) -> Optional[int]:
    """Integer form of an imported id, or None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


@dataclass
class Resolution:
    entry: object
    user_id: Optional[int] = None
    reason: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.user_id is not None


async def resolve_identities(db: AsyncSession, entries: Sequence) -> List[Resolution]:
    """
    Each entry needs `user_id` and/or `email`. An explicit `user_id` wins over
    the email; emails match case-insensitively.
    """
    ids = {parse_user_id(e.user_id) for e in entries if e.user_id is not None}
    ids.discard(None)
    emails = {e.email.strip().lower() for e in entries if e.user_id is None and e.email}

    known_ids = set()
    ids_by_email = {}
    if ids or emails:
        conditions = []
        if ids:
            conditions.append(User.id.in_(ids))
        if emails:
            conditions.append(func.lower(User.email).in_(emails))
        result = await db.execute(select(User.id, User.email).where(or_(*conditions)))
        for user_id, email in result.all():
            known_ids.add(user_id)
            if email:
                ids_by_email[email.lower()] = user_id

    resolutions = []
    for entry in entries:
        if entry.user_id is not None:
            user_id = parse_user_id(entry.user_id)
            if user_id is not None and user_id in known_ids:
                resolutions.append(Resolution(entry, user_id=user_id))
            else:
                resolutions.append(Resolution(entry, reason=f"User with id {entry.user_id} not found"))
        elif entry.email:
            user_id = ids_by_email.get(entry.email.strip().lower())
            if user_id is None:
                resolutions.append(Resolution(entry, reason=f'User with email "{entry.email}" not found'))
            else:
                resolutions.append(Resolution(entry, user_id=user_id))
        else:
            resolutions.append(Resolution(entry, reason="Entry missing both userId and email"))
    return resolutions
