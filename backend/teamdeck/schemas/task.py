from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from teamdeck.models.permission import PermissionLevel
from teamdeck.models.task import TaskStatus
from teamdeck.schemas.assignee import Assignee, AssigneeRead


class TaskCreate(BaseModel):
    project_id: int = Field(gt=0)
    name: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.backlog

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required")
        return normalized


class TaskUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required")
        return normalized


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskRead(BaseModel):
    id: int
    project_id: int
    name: str
    description: Optional[str] = None
    status: TaskStatus
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    assignees: List[AssigneeRead] = Field(default_factory=list)
    permission: PermissionLevel = PermissionLevel.none


class MyTaskRead(TaskRead):
    project_name: str


class TaskAssign(BaseModel):
    assignee: Assignee
