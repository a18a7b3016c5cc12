from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from teamdeck.models.user import UserRole


class UserSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    image_url: Optional[str] = None


class UserRead(UserSummary):
    role: UserRole
    created_at: datetime


class UserRoleUpdate(BaseModel):
    role: Literal["admin", "member"]
