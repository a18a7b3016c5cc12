from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from teamdeck.models.permission import PermissionLevel
from teamdeck.schemas.user import UserSummary


def _normalize_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("Name is required")
    return normalized


class TeamCreate(BaseModel):
    name: str
    leader_id: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    leader_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _normalize_name(value)


class TeamMemberAdd(BaseModel):
    user_id: int = Field(gt=0)


class TeamMemberRead(UserSummary):
    membership_id: int
    added_at: datetime


class TeamSummary(BaseModel):
    id: int
    name: str
    leader: Optional[UserSummary] = None
    member_count: int = 0
    created_at: datetime


class TeamRead(TeamSummary):
    members: List[TeamMemberRead] = Field(default_factory=list)
    permission: PermissionLevel = PermissionLevel.none


class TeamOption(BaseModel):
    id: int
    name: str
