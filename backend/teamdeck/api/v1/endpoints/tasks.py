from typing import Optional

from fastapi import APIRouter, Query, status

from teamdeck.api.deps import (
    CurrentUser,
    PaginationDep,
    SessionDep,
    SessionFactoryDep,
    http_error_from,
    page_response,
)
from teamdeck.db.pagination import InvalidCursor
from teamdeck.models.activity import ActivityEntityType, ActivityType
from teamdeck.models.task import Task, TaskStatus
from teamdeck.schemas.pagination import Page
from teamdeck.schemas.project import AssignmentCreated
from teamdeck.schemas.task import MyTaskRead, TaskAssign, TaskCreate, TaskStatusUpdate, TaskUpdate
from teamdeck.schemas.team import TeamOption
from teamdeck.schemas.user import UserSummary
from teamdeck.services import activity as activity_service
from teamdeck.services import tasks as tasks_service
from teamdeck.services.errors import ServiceError

router = APIRouter()


def _record_status_change(session_factory, *, task: Task, previous: TaskStatus, user_id: int) -> None:
    if task.status == previous:
        return
    completed = task.status == TaskStatus.done
    activity_service.schedule_activity(
        session_factory,
        activity_type=ActivityType.task_completed if completed else ActivityType.task_updated,
        title=f"Completed task {task.name}" if completed else f"Moved task {task.name} to {task.status.value}",
        user_id=user_id,
        entity_type=ActivityEntityType.task,
        entity_id=task.id,
    )


@router.post("/", response_model=MyTaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    session: SessionDep,
    session_factory: SessionFactoryDep,
    current_user: CurrentUser,
) -> MyTaskRead:
    try:
        task = await tasks_service.create_task(
            session,
            actor=current_user,
            project_id=task_in.project_id,
            name=task_in.name,
            description=task_in.description,
            status=task_in.status,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    activity_service.schedule_activity(
        session_factory,
        activity_type=ActivityType.task_created,
        title=f"Created task {task.name}",
        description=task.description,
        user_id=current_user.id,
        entity_type=ActivityEntityType.task,
        entity_id=task.id,
    )
    return await tasks_service.describe_task(session, user=current_user, task=task)


@router.get("/mine", response_model=Page[MyTaskRead])
async def list_my_tasks(
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    project_id: Optional[int] = Query(default=None, gt=0),
) -> dict:
    try:
        result = await tasks_service.list_my_tasks(
            session,
            user=current_user,
            opts=pagination,
            status=task_status,
            project_id=project_id,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_task(assignment_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await tasks_service.unassign_task(session, actor=current_user, assignment_id=assignment_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.get("/{task_id}", response_model=MyTaskRead)
async def read_task(task_id: int, session: SessionDep, current_user: CurrentUser) -> MyTaskRead:
    try:
        return await tasks_service.get_task(session, user=current_user, task_id=task_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc


@router.patch("/{task_id}", response_model=MyTaskRead)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    session: SessionDep,
    session_factory: SessionFactoryDep,
    current_user: CurrentUser,
) -> MyTaskRead:
    try:
        existing = await tasks_service.get_task_or_404(session, task_id)
        previous = existing.status
        task = await tasks_service.update_task(
            session,
            actor=current_user,
            task_id=task_id,
            name=task_in.name,
            description=task_in.description,
            status=task_in.status,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    _record_status_change(session_factory, task=task, previous=previous, user_id=current_user.id)
    return await tasks_service.describe_task(session, user=current_user, task=task)


@router.patch("/{task_id}/status", response_model=MyTaskRead)
async def update_task_status(
    task_id: int,
    status_in: TaskStatusUpdate,
    session: SessionDep,
    session_factory: SessionFactoryDep,
    current_user: CurrentUser,
) -> MyTaskRead:
    try:
        existing = await tasks_service.get_task_or_404(session, task_id)
        previous = existing.status
        task = await tasks_service.update_task_status(
            session,
            actor=current_user,
            task_id=task_id,
            status=status_in.status,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    _record_status_change(session_factory, task=task, previous=previous, user_id=current_user.id)
    return await tasks_service.describe_task(session, user=current_user, task=task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await tasks_service.delete_task(session, actor=current_user, task_id=task_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.post("/{task_id}/assignments", response_model=AssignmentCreated, status_code=status.HTTP_201_CREATED)
async def assign_task(
    task_id: int,
    assign_in: TaskAssign,
    session: SessionDep,
    current_user: CurrentUser,
) -> AssignmentCreated:
    try:
        assignment = await tasks_service.assign_task(
            session,
            actor=current_user,
            task_id=task_id,
            assignee=assign_in.assignee,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    return AssignmentCreated(id=assignment.id)


@router.get("/{task_id}/available-teams", response_model=Page[TeamOption])
async def list_available_teams(
    task_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
) -> dict:
    try:
        result = await tasks_service.get_available_teams_for_task(
            session,
            user=current_user,
            task_id=task_id,
            opts=pagination,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.get("/{task_id}/available-users", response_model=Page[UserSummary])
async def list_available_users(
    task_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
) -> dict:
    try:
        result = await tasks_service.get_available_users_for_task(
            session,
            user=current_user,
            task_id=task_id,
            opts=pagination,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)
