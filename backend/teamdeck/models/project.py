from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class AssigneeType(str, Enum):
    team = "team"
    user = "user"


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_by: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class ProjectAssignment(SQLModel, table=True):
    __tablename__ = "project_assignments"
    __table_args__ = (
        UniqueConstraint("project_id", "assignee_type", "assignee_id", name="uq_project_assignments_assignee"),
    )

    resource_field: ClassVar[str] = "project_id"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True, nullable=False)
    assignee_type: AssigneeType = Field(
        sa_column=Column(SQLEnum(AssigneeType, name="assignee_type"), nullable=False),
    )
    assignee_id: int = Field(index=True, nullable=False)
