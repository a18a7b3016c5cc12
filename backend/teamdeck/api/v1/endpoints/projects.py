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
from teamdeck.models.task import TaskStatus
from teamdeck.schemas.pagination import Page
from teamdeck.schemas.project import (
    AssignmentCreated,
    ProjectAssign,
    ProjectCreate,
    ProjectRead,
    ProjectSummary,
    ProjectUpdate,
)
from teamdeck.schemas.task import TaskRead
from teamdeck.schemas.team import TeamOption
from teamdeck.schemas.user import UserSummary
from teamdeck.services import activity as activity_service
from teamdeck.services import projects as projects_service
from teamdeck.services import tasks as tasks_service
from teamdeck.services.errors import ServiceError

router = APIRouter()


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    session: SessionDep,
    session_factory: SessionFactoryDep,
    current_user: CurrentUser,
) -> ProjectRead:
    try:
        project = await projects_service.create_project(
            session,
            actor=current_user,
            name=project_in.name,
            description=project_in.description,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    activity_service.schedule_activity(
        session_factory,
        activity_type=ActivityType.project_created,
        title=f"Created project {project.name}",
        description=project.description,
        user_id=current_user.id,
        entity_type=ActivityEntityType.project,
        entity_id=project.id,
    )
    return await projects_service.describe_project(session, user=current_user, project=project)


@router.get("/", response_model=Page[ProjectSummary])
async def list_projects(
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
    project_filter: projects_service.ProjectFilter = Query(
        default=projects_service.ProjectFilter.all, alias="filter"
    ),
) -> dict:
    try:
        result = await projects_service.list_projects(
            session,
            user=current_user,
            opts=pagination,
            project_filter=project_filter,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_project(assignment_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await projects_service.unassign_project(session, actor=current_user, assignment_id=assignment_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.get("/{project_id}", response_model=ProjectRead)
async def read_project(project_id: int, session: SessionDep, current_user: CurrentUser) -> ProjectRead:
    try:
        return await projects_service.get_project(session, user=current_user, project_id=project_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ProjectRead:
    try:
        project = await projects_service.update_project(
            session,
            actor=current_user,
            project_id=project_id,
            name=project_in.name,
            description=project_in.description,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    return await projects_service.describe_project(session, user=current_user, project=project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await projects_service.delete_project(session, actor=current_user, project_id=project_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.post(
    "/{project_id}/assignments",
    response_model=AssignmentCreated,
    status_code=status.HTTP_201_CREATED,
)
async def assign_project(
    project_id: int,
    assign_in: ProjectAssign,
    session: SessionDep,
    current_user: CurrentUser,
) -> AssignmentCreated:
    try:
        assignment = await projects_service.assign_project(
            session,
            actor=current_user,
            project_id=project_id,
            assignee=assign_in.assignee,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    return AssignmentCreated(id=assignment.id)


@router.get("/{project_id}/tasks", response_model=Page[TaskRead])
async def list_project_tasks(
    project_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
) -> dict:
    try:
        result = await tasks_service.get_tasks_by_project(
            session,
            user=current_user,
            project_id=project_id,
            opts=pagination,
            status=task_status,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.get("/{project_id}/available-teams", response_model=Page[TeamOption])
async def list_available_teams(
    project_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
) -> dict:
    try:
        result = await projects_service.get_available_teams_for_project(
            session,
            user=current_user,
            project_id=project_id,
            opts=pagination,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.get("/{project_id}/available-users", response_model=Page[UserSummary])
async def list_available_users(
    project_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
) -> dict:
    try:
        result = await projects_service.get_available_users_for_project(
            session,
            user=current_user,
            project_id=project_id,
            opts=pagination,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)
