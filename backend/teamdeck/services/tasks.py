from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import AssignmentMessages, ProjectMessages, TaskMessages
from teamdeck.db.pagination import PageResult, empty_page, paginate
from teamdeck.models.permission import PermissionLevel
from teamdeck.models.project import AssigneeType, Project
from teamdeck.models.task import Task, TaskAssignment, TaskStatus
from teamdeck.models.team import Team
from teamdeck.models.user import User
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.schemas.task import MyTaskRead, TaskRead
from teamdeck.schemas.team import TeamOption
from teamdeck.schemas.user import UserSummary
from teamdeck.services import assignments as assignments_service
from teamdeck.services import permissions as permissions_service
from teamdeck.services import users as users_service
from teamdeck.services.assignments import AnyAssignee
from teamdeck.services.errors import NotAuthorized, NotFound
from teamdeck.services.projects import get_project_or_404, require_project_manager

logger = logging.getLogger(__name__)


async def get_task_or_404(session: AsyncSession, task_id: int) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise NotFound(TaskMessages.NOT_FOUND)
    return task


async def build_task_read(session: AsyncSession, task: Task, permission: PermissionLevel) -> TaskRead:
    assignments = await assignments_service.list_assignments(session, TaskAssignment, resource_id=task.id)
    return TaskRead(
        id=task.id,
        project_id=task.project_id,
        name=task.name,
        description=task.description,
        status=task.status,
        created_by=task.created_by,
        created_at=task.created_at,
        updated_at=task.updated_at,
        assignees=await assignments_service.resolve_assignees(session, assignments),
        permission=permission,
    )


async def create_task(
    session: AsyncSession,
    *,
    actor: User,
    project_id: int,
    name: str,
    description: Optional[str] = None,
    status: TaskStatus = TaskStatus.backlog,
) -> Task:
    await get_project_or_404(session, project_id)
    level = await permissions_service.get_project_permission(session, user=actor, project_id=project_id)
    permissions_service.require_permission(level, permissions_service.ACCESS_LEVELS, ProjectMessages.NO_ACCESS)

    task = Task(
        project_id=project_id,
        name=name,
        description=description,
        status=status,
        created_by=actor.id,
    )
    session.add(task)
    await session.flush()
    await session.refresh(task)
    logger.info("Task %s created in project %s by %s", task.id, project_id, actor.id)
    return task


async def update_task(
    session: AsyncSession,
    *,
    actor: User,
    task_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[TaskStatus] = None,
) -> Task:
    """Edit a task. Callers at ``member`` level may only move its status."""
    task = await get_task_or_404(session, task_id)
    level = await permissions_service.get_task_permission(session, user=actor, task_id=task_id)
    permissions_service.require_permission(level, permissions_service.ACCESS_LEVELS, TaskMessages.NO_ACCESS)
    if level == PermissionLevel.member and (name is not None or description is not None):
        raise NotAuthorized(TaskMessages.MEMBERS_STATUS_ONLY)

    if name is not None:
        task.name = name
    if description is not None:
        task.description = description
    if status is not None:
        task.status = status
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()
    await session.refresh(task)
    return task


async def update_task_status(session: AsyncSession, *, actor: User, task_id: int, status: TaskStatus) -> Task:
    task = await get_task_or_404(session, task_id)
    level = await permissions_service.get_task_permission(session, user=actor, task_id=task_id)
    permissions_service.require_permission(level, permissions_service.ACCESS_LEVELS, TaskMessages.NO_ACCESS)

    task.status = status
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()
    await session.refresh(task)
    return task


async def delete_task(session: AsyncSession, *, actor: User, task_id: int) -> None:
    task = await get_task_or_404(session, task_id)
    await require_project_manager(session, user=actor, project_id=task.project_id)
    await assignments_service.delete_resource_assignments(session, TaskAssignment, resource_ids=[task_id])
    await session.delete(task)
    await session.flush()


async def assign_task(
    session: AsyncSession,
    *,
    actor: User,
    task_id: int,
    assignee: AnyAssignee,
) -> TaskAssignment:
    task = await get_task_or_404(session, task_id)
    await require_project_manager(session, user=actor, project_id=task.project_id)
    return await assignments_service.assign(
        session,
        TaskAssignment,
        resource_id=task_id,
        assignee=assignee,
        duplicate_message=TaskMessages.ALREADY_ASSIGNED,
    )


async def unassign_task(session: AsyncSession, *, actor: User, assignment_id: int) -> None:
    assignment = await assignments_service.get_assignment(session, TaskAssignment, assignment_id=assignment_id)
    if assignment is None:
        raise NotFound(AssignmentMessages.NOT_FOUND)
    task = await get_task_or_404(session, assignment.task_id)
    await require_project_manager(session, user=actor, project_id=task.project_id)
    await assignments_service.unassign(session, TaskAssignment, assignment_id=assignment_id)


async def get_tasks_by_project(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    opts: PaginationOpts,
    status: Optional[TaskStatus] = None,
) -> PageResult[TaskRead]:
    """Tasks of one project; empty when the project is missing or out of reach."""
    teams = await permissions_service.load_user_teams(session, user_id=user.id)
    level = await permissions_service.get_project_permission(
        session, user=user, project_id=project_id, teams=teams
    )
    if level == PermissionLevel.none:
        return empty_page()

    stmt = select(Task).where(Task.project_id == project_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    page = await paginate(session, stmt, Task.id, opts)

    items = []
    for task in page.items:
        task_level = await permissions_service.get_task_permission(
            session, user=user, task_id=task.id, teams=teams
        )
        items.append(await build_task_read(session, task, task_level))
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def list_my_tasks(
    session: AsyncSession,
    *,
    user: User,
    opts: PaginationOpts,
    status: Optional[TaskStatus] = None,
    project_id: Optional[int] = None,
) -> PageResult[MyTaskRead]:
    """Tasks the caller reaches through assignments, whatever their global role."""
    stmt = select(Task)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    page = await paginate(session, stmt, Task.id, opts)
    teams = await permissions_service.load_user_teams(session, user_id=user.id)

    items = []
    for task in page.items:
        if project_id is not None and task.project_id != project_id:
            continue
        if not await permissions_service.has_task_access(session, user_id=user.id, task_id=task.id, teams=teams):
            continue
        project = await session.get(Project, task.project_id)
        level = await permissions_service.get_task_permission(session, user=user, task_id=task.id, teams=teams)
        task_read = await build_task_read(session, task, level)
        items.append(
            MyTaskRead(
                **task_read.model_dump(),
                project_name=project.name if project else "Unknown Project",
            )
        )
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def describe_task(session: AsyncSession, *, user: User, task: Task) -> MyTaskRead:
    level = await permissions_service.get_task_permission(session, user=user, task_id=task.id)
    project = await session.get(Project, task.project_id)
    task_read = await build_task_read(session, task, level)
    return MyTaskRead(**task_read.model_dump(), project_name=project.name if project else "Unknown Project")


async def get_task(session: AsyncSession, *, user: User, task_id: int) -> MyTaskRead:
    task = await get_task_or_404(session, task_id)
    level = await permissions_service.get_task_permission(session, user=user, task_id=task_id)
    if level == PermissionLevel.none:
        raise NotAuthorized(TaskMessages.NO_ACCESS)
    return await describe_task(session, user=user, task=task)


async def get_available_teams_for_task(
    session: AsyncSession,
    *,
    user: User,
    task_id: int,
    opts: PaginationOpts,
) -> PageResult[TeamOption]:
    task = await session.get(Task, task_id)
    if task is None:
        return empty_page()
    level = await permissions_service.get_project_permission(session, user=user, project_id=task.project_id)
    if level not in permissions_service.MANAGE_LEVELS:
        return empty_page()

    assignments = await assignments_service.list_assignments(session, TaskAssignment, resource_id=task_id)
    assigned = assignments_service.assigned_ids(assignments, AssigneeType.team)
    page = await paginate(session, select(Team), Team.id, opts)
    items = [TeamOption(id=team.id, name=team.name) for team in page.items if team.id not in assigned]
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def get_available_users_for_task(
    session: AsyncSession,
    *,
    user: User,
    task_id: int,
    opts: PaginationOpts,
) -> PageResult[UserSummary]:
    task = await session.get(Task, task_id)
    if task is None:
        return empty_page()
    level = await permissions_service.get_project_permission(session, user=user, project_id=task.project_id)
    if level not in permissions_service.MANAGE_LEVELS:
        return empty_page()

    assignments = await assignments_service.list_assignments(session, TaskAssignment, resource_id=task_id)
    assigned = assignments_service.assigned_ids(assignments, AssigneeType.user)
    return await users_service.list_users_for_assignment(session, opts=opts, exclude_ids=assigned)
