from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from teamdeck.models.permission import PermissionLevel
from teamdeck.schemas.assignee import Assignee, AssigneeRead
from teamdeck.schemas.user import UserSummary


class ProjectBase(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required")
        return normalized


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required")
        return normalized


class TaskStats(BaseModel):
    total: int = 0
    backlog: int = 0
    todo: int = 0
    in_progress: int = 0
    review: int = 0
    done: int = 0


class ProjectSummary(ProjectBase):
    id: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    task_stats: TaskStats = Field(default_factory=TaskStats)
    permission: PermissionLevel = PermissionLevel.none


class ProjectRead(ProjectSummary):
    creator: Optional[UserSummary] = None
    assignees: List[AssigneeRead] = Field(default_factory=list)


class ProjectAssign(BaseModel):
    assignee: Assignee


class AssignmentCreated(BaseModel):
    id: int
