from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from teamdeck.models.activity import ActivityEntityType, ActivityType
from teamdeck.schemas.user import UserSummary


class ActivityRead(BaseModel):
    id: int
    type: ActivityType
    title: str
    description: Optional[str] = None
    entity_type: Optional[ActivityEntityType] = None
    entity_id: Optional[int] = None
    created_at: datetime
    user: Optional[UserSummary] = None


class ActivityCounts(BaseModel):
    tasks: int = 0
    projects: int = 0
    members: int = 0


class ActivityStats(BaseModel):
    days_back: int
    total: int = 0
    by_type: ActivityCounts = Field(default_factory=ActivityCounts)
