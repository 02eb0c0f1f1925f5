from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import setup_logger
from app.models.communication import Notification
from app.models.user import User
from app.services.visibility import audience_matches

logger = setup_logger(__name__)


async def notify_audience(
    db: AsyncSession,
    *,
    title: str,
    message: str,
    type: str,
    resource_id: Optional[int],
    roles: Sequence = (),
    positions: Sequence = (),
    expires_at: Optional[datetime] = None,
) -> int:
    """Queue one notification per active user in the role/position audience. The caller commits."""
    result = await db.execute(select(User).where(User.is_active.is_(True)))
    recipients = [u for u in result.scalars().all() if audience_matches(u, roles, positions)]

    for user in recipients:
        db.add(Notification(
            user_id=user.id,
            title=title,
            message=message,
            type=type,
            resource_id=resource_id,
            expires_at=expires_at,
        ))

    logger.info("Queued %d %s notifications for resource %s", len(recipients), type, resource_id)
    return len(recipients)
