"""Import all models for Alembic or metadata creation."""

from teamdeck.models.activity import ActivityLog
from teamdeck.models.project import Project, ProjectAssignment
from teamdeck.models.task import Task, TaskAssignment
from teamdeck.models.team import Team, TeamMember
from teamdeck.models.user import ExternalIdentity, User

__all__ = [
    "ExternalIdentity",
    "User",
    "Team",
    "TeamMember",
    "Project",
    "ProjectAssignment",
    "Task",
    "TaskAssignment",
    "ActivityLog",
]
