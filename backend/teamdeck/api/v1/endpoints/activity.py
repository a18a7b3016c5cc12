from typing import List, Optional

from fastapi import APIRouter, Query

from teamdeck.api.deps import CurrentUser, SessionDep
from teamdeck.models.activity import ActivityType
from teamdeck.schemas.activity import ActivityRead, ActivityStats
from teamdeck.services import activity as activity_service

router = APIRouter()


@router.get("/", response_model=List[ActivityRead])
async def list_recent_activity(
    session: SessionDep,
    current_user: CurrentUser,
    limit: int = Query(default=activity_service.DEFAULT_ACTIVITY_LIMIT, ge=1, le=activity_service.MAX_ACTIVITY_LIMIT),
    activity_type: Optional[ActivityType] = Query(default=None, alias="type"),
) -> List[ActivityRead]:
    return await activity_service.list_recent_activity(session, limit=limit, activity_type=activity_type)


@router.get("/stats", response_model=ActivityStats)
async def read_activity_stats(
    session: SessionDep,
    current_user: CurrentUser,
    days_back: int = Query(default=activity_service.DEFAULT_STATS_DAYS, ge=1, le=365),
) -> ActivityStats:
    return await activity_service.get_activity_stats(session, days_back=days_back)
