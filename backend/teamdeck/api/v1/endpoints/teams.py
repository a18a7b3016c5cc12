from fastapi import APIRouter, status

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
from teamdeck.schemas.pagination import Page
from teamdeck.schemas.team import TeamCreate, TeamMemberAdd, TeamRead, TeamSummary, TeamUpdate
from teamdeck.schemas.user import UserSummary
from teamdeck.services import activity as activity_service
from teamdeck.services import teams as teams_service
from teamdeck.services.errors import ServiceError

router = APIRouter()


@router.post("/", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
async def create_team(team_in: TeamCreate, session: SessionDep, current_user: CurrentUser) -> TeamRead:
    try:
        team = await teams_service.create_team(
            session,
            actor=current_user,
            name=team_in.name,
            leader_id=team_in.leader_id,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    return await teams_service.get_team(session, user=current_user, team_id=team.id)


@router.get("/", response_model=Page[TeamSummary])
async def list_teams(session: SessionDep, current_user: CurrentUser, pagination: PaginationDep) -> dict:
    try:
        result = await teams_service.list_teams(session, user=current_user, opts=pagination)
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.get("/{team_id}", response_model=TeamRead)
async def read_team(team_id: int, session: SessionDep, current_user: CurrentUser) -> TeamRead:
    try:
        return await teams_service.get_team(session, user=current_user, team_id=team_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc


@router.patch("/{team_id}", response_model=TeamRead)
async def update_team(
    team_id: int,
    team_in: TeamUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> TeamRead:
    try:
        await teams_service.update_team(
            session,
            actor=current_user,
            team_id=team_id,
            name=team_in.name,
            leader_id=team_in.leader_id,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    return await teams_service.get_team(session, user=current_user, team_id=team_id)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(team_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await teams_service.delete_team(session, actor=current_user, team_id=team_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.post("/{team_id}/members", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
async def add_team_member(
    team_id: int,
    member_in: TeamMemberAdd,
    session: SessionDep,
    session_factory: SessionFactoryDep,
    current_user: CurrentUser,
) -> TeamRead:
    try:
        await teams_service.add_team_member(
            session,
            actor=current_user,
            team_id=team_id,
            user_id=member_in.user_id,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    team = await teams_service.get_team(session, user=current_user, team_id=team_id)
    activity_service.schedule_activity(
        session_factory,
        activity_type=ActivityType.member_joined,
        title=f"New member joined {team.name}",
        user_id=member_in.user_id,
        entity_type=ActivityEntityType.team,
        entity_id=team_id,
    )
    return team


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team_member(
    team_id: int,
    user_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> None:
    try:
        await teams_service.remove_team_member(
            session,
            actor=current_user,
            team_id=team_id,
            user_id=user_id,
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()


@router.get("/{team_id}/available-users", response_model=Page[UserSummary])
async def list_available_users(
    team_id: int,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: PaginationDep,
) -> dict:
    try:
        result = await teams_service.get_available_users_for_team(
            session,
            user=current_user,
            team_id=team_id,
            opts=pagination,
        )
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)
