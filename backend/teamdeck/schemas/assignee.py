from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from teamdeck.models.project import AssigneeType


class TeamAssignee(BaseModel):
    type: Literal["team"] = "team"
    id: int = Field(gt=0)


class UserAssignee(BaseModel):
    type: Literal["user"] = "user"
    id: int = Field(gt=0)


Assignee = Annotated[Union[TeamAssignee, UserAssignee], Field(discriminator="type")]


class AssigneeRead(BaseModel):
    """An assignment row resolved to its team or user."""

    assignment_id: int
    type: AssigneeType
    id: int
    name: str
    image_url: Optional[str] = None
