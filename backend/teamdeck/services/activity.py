from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.config import settings
from teamdeck.models.activity import ActivityEntityType, ActivityLog, ActivityType
from teamdeck.models.user import ExternalIdentity, User
from teamdeck.schemas.activity import ActivityCounts, ActivityRead, ActivityStats
from teamdeck.services import background_tasks
from teamdeck.services import users as users_service

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 20
MAX_ACTIVITY_LIMIT = 100
DEFAULT_STATS_DAYS = 7

_STATS_GROUPS = {
    ActivityType.task_created: "tasks",
    ActivityType.task_completed: "tasks",
    ActivityType.task_updated: "tasks",
    ActivityType.project_created: "projects",
    ActivityType.member_joined: "members",
}


async def record_activity(
    session_factory: Callable[[], AsyncSession],
    *,
    activity_type: ActivityType,
    title: str,
    user_id: int,
    description: Optional[str] = None,
    entity_type: Optional[ActivityEntityType] = None,
    entity_id: Optional[int] = None,
) -> None:
    """Append an activity entry in its own session.

    Runs after the originating request has committed. Failures are logged and
    dropped so the feed can never break a mutation.
    """
    if not settings.ACTIVITY_LOG_ENABLED:
        return
    try:
        async with session_factory() as session:
            session.add(
                ActivityLog(
                    type=activity_type,
                    title=title,
                    description=description,
                    user_id=user_id,
                    entity_type=entity_type,
                    entity_id=entity_id,
                )
            )
            await session.commit()
    except Exception:
        logger.exception("Failed to record %s activity for user %s", activity_type.value, user_id)


async def list_recent_activity(
    session: AsyncSession,
    *,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
    activity_type: Optional[ActivityType] = None,
) -> List[ActivityRead]:
    """Newest entries first; entries whose user no longer exists are skipped."""
    limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))
    stmt = (
        select(ActivityLog, User, ExternalIdentity)
        .join(User, User.id == ActivityLog.user_id)
        .join(ExternalIdentity, ExternalIdentity.id == User.identity_id)
    )
    if activity_type is not None:
        stmt = stmt.where(ActivityLog.type == activity_type)
    stmt = stmt.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
    result = await session.exec(stmt)
    return [
        ActivityRead(
            id=entry.id,
            type=entry.type,
            title=entry.title,
            description=entry.description,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            created_at=entry.created_at,
            user=users_service.build_user_summary(user, identity),
        )
        for entry, user, identity in result.all()
    ]


async def get_activity_stats(session: AsyncSession, *, days_back: int = DEFAULT_STATS_DAYS) -> ActivityStats:
    """Count feed entries newer than ``days_back`` days, grouped by what they touched."""
    cutoff = datetime.now(timezone.utc) - timedelta(days=days_back)
    stmt = (
        select(ActivityLog.type, func.count(ActivityLog.id))
        .where(ActivityLog.created_at >= cutoff)
        .group_by(ActivityLog.type)
    )
    result = await session.exec(stmt)
    by_group = {group: 0 for group in _STATS_GROUPS.values()}
    for activity_type, count in result.all():
        by_group[_STATS_GROUPS[ActivityType(activity_type)]] += count
    return ActivityStats(
        days_back=days_back,
        total=sum(by_group.values()),
        by_type=ActivityCounts(**by_group),
    )


def schedule_activity(
    session_factory: Callable[[], AsyncSession],
    *,
    activity_type: ActivityType,
    title: str,
    user_id: int,
    description: Optional[str] = None,
    entity_type: Optional[ActivityEntityType] = None,
    entity_id: Optional[int] = None,
) -> None:
    """Queue ``record_activity`` without waiting for it."""
    if not settings.ACTIVITY_LOG_ENABLED:
        return
    background_tasks.fire_and_forget(
        record_activity(
            session_factory,
            activity_type=activity_type,
            title=title,
            user_id=user_id,
            description=description,
            entity_type=entity_type,
            entity_id=entity_id,
        ),
        name=f"activity-{activity_type.value}",
    )
