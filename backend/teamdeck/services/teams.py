from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import AuthMessages, TeamMessages, UserMessages
from teamdeck.db.pagination import PageResult, empty_page, paginate
from teamdeck.models.permission import PermissionLevel
from teamdeck.models.team import Team, TeamMember
from teamdeck.models.user import ExternalIdentity, User
from teamdeck.schemas.assignee import TeamAssignee
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.schemas.team import TeamMemberRead, TeamRead, TeamSummary
from teamdeck.schemas.user import UserSummary
from teamdeck.services import assignments as assignments_service
from teamdeck.services import permissions as permissions_service
from teamdeck.services import users as users_service
from teamdeck.services.errors import (
    DuplicateMembership,
    InvariantViolation,
    NotAuthorized,
    NotFound,
)

logger = logging.getLogger(__name__)


async def _get_team_or_404(session: AsyncSession, team_id: int) -> Team:
    team = await session.get(Team, team_id)
    if team is None:
        raise NotFound(TeamMessages.NOT_FOUND)
    return team


async def _find_membership(session: AsyncSession, *, team_id: int, user_id: int) -> Optional[TeamMember]:
    result = await session.exec(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    return result.first()


async def _ensure_leader_exists(session: AsyncSession, leader_id: int) -> None:
    if await session.get(User, leader_id) is None:
        raise NotFound(TeamMessages.LEADER_NOT_FOUND)


def _require_admin(actor: User) -> None:
    if not permissions_service.is_owner_or_admin(actor):
        raise NotAuthorized(AuthMessages.ADMIN_REQUIRED)


async def _require_admin_or_leader(session: AsyncSession, *, actor: User, team: Team) -> None:
    level = await permissions_service.get_team_permission(session, user=actor, team_id=team.id)
    permissions_service.require_permission(
        level,
        permissions_service.MANAGE_LEVELS,
        AuthMessages.ADMIN_OR_LEADER_REQUIRED,
    )


async def _member_count(session: AsyncSession, team_id: int) -> int:
    result = await session.exec(select(func.count(TeamMember.id)).where(TeamMember.team_id == team_id))
    return int(result.one())


async def create_team(session: AsyncSession, *, actor: User, name: str, leader_id: int) -> Team:
    _require_admin(actor)
    await _ensure_leader_exists(session, leader_id)
    team = Team(name=name, leader_id=leader_id)
    session.add(team)
    await session.flush()
    await session.refresh(team)
    logger.info("Team %s created by %s", team.id, actor.id)
    return team


async def update_team(
    session: AsyncSession,
    *,
    actor: User,
    team_id: int,
    name: Optional[str] = None,
    leader_id: Optional[int] = None,
) -> Team:
    """Rename a team or hand leadership to another user.

    A new leader keeps any membership row they already had.
    """
    team = await _get_team_or_404(session, team_id)
    _require_admin(actor)
    if name is not None:
        team.name = name
    if leader_id is not None:
        await _ensure_leader_exists(session, leader_id)
        team.leader_id = leader_id
    session.add(team)
    await session.flush()
    await session.refresh(team)
    return team


async def delete_team(session: AsyncSession, *, actor: User, team_id: int) -> None:
    team = await _get_team_or_404(session, team_id)
    _require_admin(actor)
    await session.exec(delete(TeamMember).where(TeamMember.team_id == team_id))
    await assignments_service.delete_assignee_assignments(session, TeamAssignee(id=team_id))
    await session.delete(team)
    await session.flush()
    logger.info("Team %s deleted by %s", team_id, actor.id)


async def add_team_member(
    session: AsyncSession,
    *,
    actor: User,
    team_id: int,
    user_id: int,
) -> TeamMember:
    team = await _get_team_or_404(session, team_id)
    await _require_admin_or_leader(session, actor=actor, team=team)
    if await session.get(User, user_id) is None:
        raise NotFound(UserMessages.NOT_FOUND)
    if team.leader_id == user_id:
        raise InvariantViolation(TeamMessages.LEADER_IS_MEMBER)

    if await _find_membership(session, team_id=team_id, user_id=user_id) is not None:
        raise DuplicateMembership(TeamMessages.ALREADY_MEMBER)

    membership = TeamMember(team_id=team_id, user_id=user_id)
    session.add(membership)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateMembership(TeamMessages.ALREADY_MEMBER) from exc
    await session.refresh(membership)
    return membership


async def remove_team_member(
    session: AsyncSession,
    *,
    actor: User,
    team_id: int,
    user_id: int,
) -> None:
    team = await _get_team_or_404(session, team_id)
    if team.leader_id == user_id:
        raise InvariantViolation(TeamMessages.CANNOT_REMOVE_LEADER)
    await _require_admin_or_leader(session, actor=actor, team=team)

    membership = await _find_membership(session, team_id=team_id, user_id=user_id)
    if membership is None:
        raise NotFound(TeamMessages.NOT_A_MEMBER)
    await session.delete(membership)
    await session.flush()


async def _build_summary(session: AsyncSession, team: Team) -> TeamSummary:
    return TeamSummary(
        id=team.id,
        name=team.name,
        leader=await users_service.get_user_summary(session, team.leader_id),
        member_count=await _member_count(session, team.id),
        created_at=team.created_at,
    )


async def list_teams(session: AsyncSession, *, user: User, opts: PaginationOpts) -> PageResult[TeamSummary]:
    """Teams visible to the caller; rows without access are dropped from the page."""
    page = await paginate(session, select(Team), Team.id, opts)
    is_admin = permissions_service.is_owner_or_admin(user)
    items = []
    for team in page.items:
        if not is_admin:
            level = await permissions_service.get_team_permission(session, user=user, team_id=team.id)
            if level == PermissionLevel.none:
                continue
        items.append(await _build_summary(session, team))
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def get_team(session: AsyncSession, *, user: User, team_id: int) -> TeamRead:
    team = await _get_team_or_404(session, team_id)
    level = await permissions_service.get_team_permission(session, user=user, team_id=team_id)
    if level == PermissionLevel.none:
        raise NotAuthorized(TeamMessages.NO_ACCESS)

    stmt = (
        select(TeamMember, User, ExternalIdentity)
        .join(User, User.id == TeamMember.user_id)
        .join(ExternalIdentity, ExternalIdentity.id == User.identity_id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.added_at, TeamMember.id)
    )
    result = await session.exec(stmt)
    members = [
        TeamMemberRead(
            **users_service.build_user_summary(member_user, identity).model_dump(),
            membership_id=membership.id,
            added_at=membership.added_at,
        )
        for membership, member_user, identity in result.all()
    ]
    summary = await _build_summary(session, team)
    return TeamRead(**summary.model_dump(), members=members, permission=level)


async def get_available_users_for_team(
    session: AsyncSession,
    *,
    user: User,
    team_id: int,
    opts: PaginationOpts,
) -> PageResult[UserSummary]:
    """Users that could be added to the team, excluding current members and the leader."""
    team = await session.get(Team, team_id)
    if team is None:
        return empty_page()
    level = await permissions_service.get_team_permission(session, user=user, team_id=team_id)
    if level not in permissions_service.MANAGE_LEVELS:
        return empty_page()

    result = await session.exec(select(TeamMember.user_id).where(TeamMember.team_id == team_id))
    excluded = set(result.all())
    excluded.add(team.leader_id)
    return await users_service.list_users_for_assignment(session, opts=opts, exclude_ids=excluded)
