from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class ActivityType(str, Enum):
    task_created = "task_created"
    task_completed = "task_completed"
    task_updated = "task_updated"
    project_created = "project_created"
    member_joined = "member_joined"


class ActivityEntityType(str, Enum):
    task = "task"
    project = "project"
    team = "team"


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: ActivityType = Field(
        sa_column=Column(SQLEnum(ActivityType, name="activity_type"), nullable=False),
    )
    title: str = Field(nullable=False)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    entity_type: Optional[ActivityEntityType] = Field(
        default=None,
        sa_column=Column(SQLEnum(ActivityEntityType, name="activity_entity_type"), nullable=True),
    )
    entity_id: Optional[int] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
