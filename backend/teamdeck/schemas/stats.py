from typing import Dict

from pydantic import BaseModel, Field

from teamdeck.models.task import TaskStatus


def _empty_status_counts() -> Dict[TaskStatus, int]:
    return {status: 0 for status in TaskStatus}


class DashboardStats(BaseModel):
    total_projects: int = 0
    total_tasks: int = 0
    tasks_by_status: Dict[TaskStatus, int] = Field(default_factory=_empty_status_counts)
    my_tasks: int = 0
    team_count: int = 0
