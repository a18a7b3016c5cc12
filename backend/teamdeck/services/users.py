from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import AuthMessages, UserMessages
from teamdeck.db.pagination import PageResult, paginate
from teamdeck.models.team import Team, TeamMember
from teamdeck.models.user import ExternalIdentity, User, UserRole
from teamdeck.schemas.assignee import UserAssignee
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.schemas.user import UserRead, UserSummary
from teamdeck.services import assignments as assignments_service
from teamdeck.services import permissions as permissions_service
from teamdeck.services.errors import InvariantViolation, NotAuthorized, NotFound

logger = logging.getLogger(__name__)


def build_user_summary(user: User, identity: Optional[ExternalIdentity]) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=identity.display_name if identity else "Unknown",
        email=identity.email if identity else None,
        image_url=identity.image_url if identity else None,
    )


async def get_user_summary(session: AsyncSession, user_id: int) -> Optional[UserSummary]:
    user = await session.get(User, user_id)
    if user is None:
        return None
    identity = await session.get(ExternalIdentity, user.identity_id)
    return build_user_summary(user, identity)


async def get_me(session: AsyncSession, *, user: User) -> UserRead:
    identity = await session.get(ExternalIdentity, user.identity_id)
    summary = build_user_summary(user, identity)
    return UserRead(**summary.model_dump(), role=user.role, created_at=user.created_at)


async def list_users_for_assignment(
    session: AsyncSession,
    *,
    opts: PaginationOpts,
    exclude_ids: Optional[set[int]] = None,
) -> PageResult[UserSummary]:
    """Page through users with profile data; ``exclude_ids`` are dropped after paging."""
    stmt = select(User, ExternalIdentity).join(ExternalIdentity, ExternalIdentity.id == User.identity_id)
    page = await paginate(session, stmt, User.id, opts)
    excluded = exclude_ids or set()
    items = [
        build_user_summary(user, identity)
        for user, identity in page.items
        if user.id not in excluded
    ]
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


async def list_users(
    session: AsyncSession,
    *,
    actor: User,
    opts: PaginationOpts,
) -> PageResult[UserRead]:
    """Page through every user with their role. Owners and admins only."""
    if not permissions_service.is_owner_or_admin(actor):
        raise NotAuthorized(AuthMessages.ADMIN_REQUIRED)
    stmt = select(User, ExternalIdentity).join(ExternalIdentity, ExternalIdentity.id == User.identity_id)
    page = await paginate(session, stmt, User.id, opts)
    items = [
        UserRead(**build_user_summary(user, identity).model_dump(), role=user.role, created_at=user.created_at)
        for user, identity in page.items
    ]
    return PageResult(items=items, is_done=page.is_done, continue_cursor=page.continue_cursor)


def _require_owner(user: User) -> None:
    if user.role != UserRole.owner:
        raise NotAuthorized(AuthMessages.OWNER_REQUIRED)


async def update_user_role(
    session: AsyncSession,
    *,
    actor: User,
    user_id: int,
    role: UserRole,
) -> User:
    _require_owner(actor)
    target = await session.get(User, user_id)
    if target is None:
        raise NotFound(UserMessages.NOT_FOUND)
    if target.role == UserRole.owner:
        raise InvariantViolation(UserMessages.OWNER_ROLE_IMMUTABLE)
    if role == UserRole.owner:
        raise InvariantViolation(UserMessages.OWNER_ROLE_IMMUTABLE)

    target.role = role
    session.add(target)
    await session.flush()
    logger.info("User %s role changed to %s by %s", target.id, role.value, actor.id)
    return target


async def remove_user(session: AsyncSession, *, actor: User, user_id: int) -> None:
    """Delete a user along with memberships and every assignment naming them.

    Owners cannot be removed and team leaders must hand over leadership first.
    """
    _require_owner(actor)
    target = await session.get(User, user_id)
    if target is None:
        raise NotFound(UserMessages.NOT_FOUND)
    if target.role == UserRole.owner:
        raise InvariantViolation(UserMessages.CANNOT_REMOVE_OWNER)

    result = await session.exec(select(Team.id).where(Team.leader_id == user_id))
    led_team_ids = list(result.all())
    if led_team_ids:
        raise InvariantViolation(UserMessages.LEADS_TEAMS.format(count=len(led_team_ids)))

    await session.exec(delete(TeamMember).where(TeamMember.user_id == user_id))
    await assignments_service.delete_assignee_assignments(session, UserAssignee(id=user_id))
    await session.delete(target)
    await session.flush()
    logger.info("User %s removed by %s", user_id, actor.id)
