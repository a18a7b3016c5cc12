"""Hierarchical permission evaluation for teams, projects and tasks.

Levels are ordered ``admin > team_leader > member > none``. A level is derived
from facts about the caller:

  - Global role: owners and admins resolve to ``admin`` everywhere.
  - Team leadership: leading a team that is assigned to a project grants
    ``team_leader`` on the project and on every task in it.
  - Team membership: belonging to a team (membership row or leadership) that
    is assigned to a project or task grants ``member``.
  - Direct assignment: a user assignment on the project or task grants
    ``member``.

The ``resolve_*`` functions are pure and operate on already-loaded rows. The
``get_*`` coroutines gather the facts through the session and delegate to
them. A resource id that does not exist resolves to ``none`` for every
caller, so services must check existence first when they want ``NotFound``.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.models.permission import PermissionLevel
from teamdeck.models.project import Project, ProjectAssignment
from teamdeck.models.task import Task, TaskAssignment
from teamdeck.models.team import Team
from teamdeck.models.user import User, UserRole
from teamdeck.services import assignments as assignments_service
from teamdeck.services import memberships as memberships_service
from teamdeck.services.errors import NotAuthorized

PERMISSION_LEVEL_ORDER: dict[PermissionLevel, int] = {
    PermissionLevel.none: 0,
    PermissionLevel.member: 1,
    PermissionLevel.team_leader: 2,
    PermissionLevel.admin: 3,
}

MANAGE_LEVELS = frozenset({PermissionLevel.admin, PermissionLevel.team_leader})
ACCESS_LEVELS = frozenset({PermissionLevel.admin, PermissionLevel.team_leader, PermissionLevel.member})


@dataclass
class UserTeams:
    """Team ids loaded once per caller and reused across rows."""

    led_team_ids: list[int] = field(default_factory=list)
    team_ids: list[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def is_owner_or_admin(user: Any) -> bool:
    return user.role in (UserRole.owner, UserRole.admin)


def at_least(level: PermissionLevel, minimum: PermissionLevel) -> bool:
    return PERMISSION_LEVEL_ORDER[level] >= PERMISSION_LEVEL_ORDER[minimum]


def resolve_team_permission(user: Any, *, leader_id: Optional[int], is_member: bool) -> PermissionLevel:
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    if leader_id is not None and leader_id == user.id:
        return PermissionLevel.team_leader
    if is_member:
        return PermissionLevel.member
    return PermissionLevel.none


def project_access_from(
    assignments: Iterable[Any],
    *,
    user_id: int,
    user_team_ids: Collection[int],
) -> bool:
    """Direct user assignment or a team assignment for one of the user's teams."""
    rows = list(assignments)
    if assignments_service.names_user(rows, user_id):
        return True
    return assignments_service.names_any_team(rows, user_team_ids)


def resolve_project_permission(
    user: Any,
    assignments: Iterable[Any],
    *,
    led_team_ids: Collection[int],
    user_team_ids: Collection[int],
) -> PermissionLevel:
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    rows = list(assignments)
    if assignments_service.names_any_team(rows, led_team_ids):
        return PermissionLevel.team_leader
    if project_access_from(rows, user_id=user.id, user_team_ids=user_team_ids):
        return PermissionLevel.member
    return PermissionLevel.none


def resolve_task_permission(
    user: Any,
    task_assignments: Iterable[Any],
    *,
    project_permission: PermissionLevel,
    user_team_ids: Collection[int],
) -> PermissionLevel:
    """``project_permission`` must be resolved for the task's parent project."""
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    if project_permission == PermissionLevel.team_leader:
        return PermissionLevel.team_leader
    if project_access_from(task_assignments, user_id=user.id, user_team_ids=user_team_ids):
        return PermissionLevel.member
    if project_permission != PermissionLevel.none:
        return PermissionLevel.member
    return PermissionLevel.none


def require_permission(
    level: PermissionLevel,
    allowed: Collection[PermissionLevel],
    message: str,
) -> None:
    if level not in allowed:
        raise NotAuthorized(message)


# ---------------------------------------------------------------------------
# Store-backed evaluation
# ---------------------------------------------------------------------------


async def load_user_teams(session: AsyncSession, *, user_id: int) -> UserTeams:
    return UserTeams(
        led_team_ids=await memberships_service.get_led_team_ids(session, user_id=user_id),
        team_ids=await memberships_service.get_user_team_ids(session, user_id=user_id),
    )


async def get_team_permission(session: AsyncSession, *, user: User, team_id: int) -> PermissionLevel:
    team = await session.get(Team, team_id)
    if team is None:
        return PermissionLevel.none
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    is_member = await memberships_service.is_team_member(session, user_id=user.id, team_id=team_id)
    return resolve_team_permission(user, leader_id=team.leader_id, is_member=is_member)


async def get_project_permission(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    teams: Optional[UserTeams] = None,
) -> PermissionLevel:
    project = await session.get(Project, project_id)
    if project is None:
        return PermissionLevel.none
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    if teams is None:
        teams = await load_user_teams(session, user_id=user.id)
    assignments = await assignments_service.list_assignments(
        session, ProjectAssignment, resource_id=project_id
    )
    return resolve_project_permission(
        user,
        assignments,
        led_team_ids=teams.led_team_ids,
        user_team_ids=teams.team_ids,
    )


async def get_task_permission(
    session: AsyncSession,
    *,
    user: User,
    task_id: int,
    teams: Optional[UserTeams] = None,
) -> PermissionLevel:
    task = await session.get(Task, task_id)
    if task is None:
        return PermissionLevel.none
    if is_owner_or_admin(user):
        return PermissionLevel.admin
    if teams is None:
        teams = await load_user_teams(session, user_id=user.id)
    project_permission = await get_project_permission(
        session, user=user, project_id=task.project_id, teams=teams
    )
    task_assignments = await assignments_service.list_assignments(
        session, TaskAssignment, resource_id=task_id
    )
    return resolve_task_permission(
        user,
        task_assignments,
        project_permission=project_permission,
        user_team_ids=teams.team_ids,
    )


async def has_project_access(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
    teams: Optional[UserTeams] = None,
) -> bool:
    """Assignment-based access, ignoring the caller's global role."""
    if await session.get(Project, project_id) is None:
        return False
    if await assignments_service.has_direct_user_assignment(
        session, ProjectAssignment, resource_id=project_id, user_id=user_id
    ):
        return True
    if teams is None:
        teams = await load_user_teams(session, user_id=user_id)
    return await assignments_service.has_team_assignment(
        session, ProjectAssignment, resource_id=project_id, team_ids=teams.team_ids
    )


async def has_task_access(
    session: AsyncSession,
    *,
    user_id: int,
    task_id: int,
    teams: Optional[UserTeams] = None,
) -> bool:
    """Task assignment for the user or their teams, or access to the parent project."""
    task = await session.get(Task, task_id)
    if task is None:
        return False
    if await assignments_service.has_direct_user_assignment(
        session, TaskAssignment, resource_id=task_id, user_id=user_id
    ):
        return True
    if teams is None:
        teams = await load_user_teams(session, user_id=user_id)
    if await assignments_service.has_team_assignment(
        session, TaskAssignment, resource_id=task_id, team_ids=teams.team_ids
    ):
        return True
    return await has_project_access(session, user_id=user_id, project_id=task.project_id, teams=teams)
