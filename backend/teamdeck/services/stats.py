from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.config import settings
from teamdeck.models.permission import PermissionLevel
from teamdeck.models.project import Project
from teamdeck.models.task import Task, TaskStatus
from teamdeck.models.team import Team
from teamdeck.models.user import User
from teamdeck.schemas.stats import DashboardStats
from teamdeck.services import permissions as permissions_service


async def get_dashboard_stats(session: AsyncSession, *, user: User) -> DashboardStats:
    """Counts for the dashboard header.

    Each table scan is capped at ``STATS_SCAN_LIMIT`` rows, so large
    installations see lower bounds rather than exact totals. Admins count every
    task; everyone else counts the tasks they can reach.
    """
    scan_limit = settings.STATS_SCAN_LIMIT
    is_admin = permissions_service.is_owner_or_admin(user)
    teams = await permissions_service.load_user_teams(session, user_id=user.id)

    result = await session.exec(select(Project.id).limit(scan_limit))
    total_projects = 0
    for project_id in result.all():
        level = await permissions_service.get_project_permission(
            session, user=user, project_id=project_id, teams=teams
        )
        if level != PermissionLevel.none:
            total_projects += 1

    tasks_by_status = {status: 0 for status in TaskStatus}
    total_tasks = 0
    my_tasks = 0

    if is_admin:
        for status in TaskStatus:
            result = await session.exec(select(Task.id).where(Task.status == status).limit(scan_limit))
            count = len(result.all())
            tasks_by_status[status] = count
            total_tasks += count

    result = await session.exec(select(Task).limit(scan_limit))
    for task in result.all():
        if not await permissions_service.has_task_access(session, user_id=user.id, task_id=task.id, teams=teams):
            continue
        my_tasks += 1
        if not is_admin:
            total_tasks += 1
            tasks_by_status[task.status] += 1

    if is_admin:
        result = await session.exec(select(Team.id).limit(scan_limit))
        team_count = len(result.all())
    else:
        team_count = len(teams.team_ids)

    return DashboardStats(
        total_projects=total_projects,
        total_tasks=total_tasks,
        tasks_by_status=tasks_by_status,
        my_tasks=my_tasks,
        team_count=team_count,
    )
