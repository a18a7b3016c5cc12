from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import AssignmentMessages, AuthMessages, ProjectMessages
from teamdeck.db.pagination import PageResult, empty_page, paginate
from teamdeck.models.permission import PermissionLevel
from teamdeck.models.project import AssigneeType, Project, ProjectAssignment
from teamdeck.models.task import Task, TaskAssignment, TaskStatus
from teamdeck.models.team import Team
from teamdeck.models.user import User
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.schemas.project import ProjectRead, ProjectSummary, TaskStats
from teamdeck.schemas.team import TeamOption
from teamdeck.schemas.user import UserSummary
from teamdeck.services import assignments as assignments_service
from teamdeck.services import memberships as memberships_service
from teamdeck.services import permissions as permissions_service
from teamdeck.services import users as users_service
from teamdeck.services.assignments import AnyAssignee
from teamdeck.services.errors import NotAuthorized, NotFound

logger = logging.getLogger(__name__)


class ProjectFilter(str, Enum):
    all = "all"
    my = "my"
    team = "team"


async def get_project_or_404(session: AsyncSession, project_id: int) -> Project:
    project = await session.get(Project, project_id)
    if project is None:
        raise NotFound(ProjectMessages.NOT_FOUND)
    return project


async def require_project_manager(session: AsyncSession, *, user: User, project_id: int) -> PermissionLevel:
    level = await permissions_service.get_project_permission(session, user=user, project_id=project_id)
    permissions_service.require_permission(
        level,
        permissions_service.MANAGE_LEVELS,
        AuthMessages.ADMIN_OR_LEADER_REQUIRED,
    )
    return level


async def get_task_stats(session: AsyncSession, project_id: int) -> TaskStats:
    result = await session.exec(select(Task.status).where(Task.project_id == project_id))
    counts = {status.value: 0 for status in TaskStatus}
    total = 0
    for status in result.all():
        counts[TaskStatus(status).value] += 1
        total += 1
    return TaskStats(total=total, **counts)


async def create_project(
    session: AsyncSession,
    *,
    actor: User,
    name: str,
    description: Optional[str] = None,
) -> Project:
    if not (
        permissions_service.is_owner_or_admin(actor)
        or await memberships_service.is_any_team_leader(session, user_id=actor.id)
    ):
        raise NotAuthorized(AuthMessages.ADMIN_OR_LEADER_REQUIRED)

    project = Project(name=name, description=description, created_by=actor.id)
    session.add(project)
    await session.flush()
    await session.refresh(project)
    logger.info("Project %s created by %s", project.id, actor.id)
    return project


async def update_project(
    session: AsyncSession,
    *,
    actor: User,
    project_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Project:
    project = await get_project_or_404(session, project_id)
    await require_project_manager(session, user=actor, project_id=project_id)
    if name is not None:
        project.name = name
    if description is not None:
        project.description = description
    project.updated_at = datetime.now(timezone.utc)
    session.add(project)
    await session.flush()
    await session.refresh(project)
    return project


async def delete_project(session: AsyncSession, *, actor: User, project_id: int) -> None:
    """Remove a project with its tasks and every assignment hanging off them."""
    project = await get_project_or_404(session, project_id)
    await require_project_manager(session, user=actor, project_id=project_id)

    result = await session.exec(select(Task.id).where(Task.project_id == project_id))
    task_ids = list(result.all())
    await assignments_service.delete_resource_assignments(session, TaskAssignment, resource_ids=task_ids)
    await session.exec(delete(Task).where(Task.project_id == project_id))
    await assignments_service.delete_resource_assignments(
        session, ProjectAssignment, resource_ids=[project_id]
    )
    await session.delete(project)
    await session.flush()
    logger.info("Project %s deleted by %s (%d tasks)", project_id, actor.id, len(task_ids))


async def assign_project(
    session: AsyncSession,
    *,
    actor: User,
    project_id: int,
    assignee: AnyAssignee,
) -> ProjectAssignment:
    await get_project_or_404(session, project_id)
    await require_project_manager(session, user=actor, project_id=project_id)
    return await assignments_service.assign(
        session,
        ProjectAssignment,
        resource_id=project_id,
        assignee=assignee,
        duplicate_message=ProjectMessages.ALREADY_ASSIGNED,
    )


async def unassign_project(session: AsyncSession, *, actor: User, assignment_id: int) -> None:
    assignment = await assignments_service.get_assignment(
        session, ProjectAssignment, assignment_id=assignment_id
    )
    if assignment is None:
        raise NotFound(AssignmentMessages.NOT_FOUND)
    await get_project_or_404(session, assignment.project_id)
    await require_project_manager(session, user=actor, project_id=assignment.project_id)
    await assignments_service.unassign(session, ProjectAssignment, assignment_id=assignment_id)


async def list_projects(
    session: AsyncSession,
    *,
    user: User,
    opts: PaginationOpts,
    project_filter: ProjectFilter = ProjectFilter.all,
) -> PageResult[ProjectSummary]:
    """One page of projects the caller can see, narrowed by ``project_filter``.

    ``my`` keeps projects the caller created or is directly assigned to;
    ``team`` keeps projects assigned to one of the caller's teams.
    """
    page = await paginate(session, select(Project), Project.id, opts)
    teams = await permissions_service.load_user_teams(session, user_id=user.id)

    items = []
    for project in page.items:
        level = await permissions_service.get_project_permission(
            session, user=user, project_id=project.id, teams=teams
        )
        if level == PermissionLevel.none:
            continue

        if project_filter != ProjectFilter.all:
            assignments = await assignments_service.list_assignments(
                session, ProjectAssignment, resource_id=project.id
            )
            if project_filter == ProjectFilter.my:
                if project.created_by != user.id and not assignments_service.names_user(assignments, user.id):
                    continue
            elif project_filter == ProjectFilter.team:
                if not assignments_service.names_any_team(assignments, teams.team_ids):
                    continue

        items.append(
            ProjectSummary(
                id=project.id,
                name=project.name,
                description=project.description,
                created_by=project.created_by,
                created_at=project.created_at,
                updated_at=project.updated_at,
                task_stats=await get_task_stats(session, project.id),
                permission=level,
            )
        )
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def describe_project(session: AsyncSession, *, user: User, project: Project) -> ProjectRead:
    """Full project view without an access check; ``permission`` may be ``none``."""
    project_id = project.id
    level = await permissions_service.get_project_permission(session, user=user, project_id=project_id)
    assignments = await assignments_service.list_assignments(
        session, ProjectAssignment, resource_id=project_id
    )
    creator = None
    if project.created_by is not None:
        creator = await users_service.get_user_summary(session, project.created_by)
    return ProjectRead(
        id=project.id,
        name=project.name,
        description=project.description,
        created_by=project.created_by,
        created_at=project.created_at,
        updated_at=project.updated_at,
        task_stats=await get_task_stats(session, project_id),
        permission=level,
        creator=creator,
        assignees=await assignments_service.resolve_assignees(session, assignments),
    )


async def get_project(session: AsyncSession, *, user: User, project_id: int) -> ProjectRead:
    project = await get_project_or_404(session, project_id)
    level = await permissions_service.get_project_permission(session, user=user, project_id=project_id)
    if level == PermissionLevel.none:
        raise NotAuthorized(ProjectMessages.NO_ACCESS)
    return await describe_project(session, user=user, project=project)


async def get_available_teams_for_project(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    opts: PaginationOpts,
) -> PageResult[TeamOption]:
    level = await permissions_service.get_project_permission(session, user=user, project_id=project_id)
    if level not in permissions_service.MANAGE_LEVELS:
        return empty_page()

    assignments = await assignments_service.list_assignments(
        session, ProjectAssignment, resource_id=project_id
    )
    assigned = assignments_service.assigned_ids(assignments, AssigneeType.team)
    page = await paginate(session, select(Team), Team.id, opts)
    items = [TeamOption(id=team.id, name=team.name) for team in page.items if team.id not in assigned]
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def get_available_users_for_project(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    opts: PaginationOpts,
) -> PageResult[UserSummary]:
    level = await permissions_service.get_project_permission(session, user=user, project_id=project_id)
    if level not in permissions_service.MANAGE_LEVELS:
        return empty_page()

    assignments = await assignments_service.list_assignments(
        session, ProjectAssignment, resource_id=project_id
    )
    assigned = assignments_service.assigned_ids(assignments, AssigneeType.user)
    return await users_service.list_users_for_assignment(session, opts=opts, exclude_ids=assigned)
