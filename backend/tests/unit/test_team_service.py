"""
Unit tests for team service functions.

Tests the business logic in teamdeck.services.teams including:
- Admin-only team creation and deletion
- Leader invariants on membership changes
- Cascading removal of memberships and assignments
- Visibility filtering in team listings
"""

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.models.permission import PermissionLevel
from teamdeck.models.project import ProjectAssignment
from teamdeck.models.task import TaskAssignment
from teamdeck.models.team import TeamMember
from teamdeck.models.user import UserRole
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.services import teams as teams_service
from teamdeck.services.errors import (
    DuplicateMembership,
    InvariantViolation,
    NotAuthorized,
    NotFound,
)
from teamdeck.testing.factories import (
    add_team_member,
    assign_project,
    assign_task,
    create_project,
    create_task,
    create_team,
    create_user,
)


@pytest.mark.unit
@pytest.mark.service
async def test_create_team_requires_admin(session: AsyncSession):
    member = await create_user(session)

    with pytest.raises(NotAuthorized):
        await teams_service.create_team(session, actor=member, name="Ops", leader_id=member.id)


@pytest.mark.unit
@pytest.mark.service
async def test_create_team_with_missing_leader(session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)

    with pytest.raises(NotFound):
        await teams_service.create_team(session, actor=admin, name="Ops", leader_id=999)


@pytest.mark.unit
@pytest.mark.service
async def test_leader_cannot_be_removed_as_member(session: AsyncSession):
    """Removing the leader through the member path fails for every caller."""
    leader = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    team = await create_team(session, leader=leader)

    for actor in (leader, admin):
        with pytest.raises(InvariantViolation):
            await teams_service.remove_team_member(session, actor=actor, team_id=team.id, user_id=leader.id)


@pytest.mark.unit
@pytest.mark.service
async def test_leader_cannot_be_added_as_member(session: AsyncSession):
    leader = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    team = await create_team(session, leader=leader)

    with pytest.raises(InvariantViolation):
        await teams_service.add_team_member(session, actor=admin, team_id=team.id, user_id=leader.id)


@pytest.mark.unit
@pytest.mark.service
async def test_leader_adds_and_removes_members(session: AsyncSession):
    leader = await create_user(session)
    user = await create_user(session)
    team = await create_team(session, leader=leader)

    membership = await teams_service.add_team_member(session, actor=leader, team_id=team.id, user_id=user.id)
    assert membership.user_id == user.id

    with pytest.raises(DuplicateMembership):
        await teams_service.add_team_member(session, actor=leader, team_id=team.id, user_id=user.id)

    await teams_service.remove_team_member(session, actor=leader, team_id=team.id, user_id=user.id)
    with pytest.raises(NotFound):
        await teams_service.remove_team_member(session, actor=leader, team_id=team.id, user_id=user.id)


@pytest.mark.unit
@pytest.mark.service
async def test_member_cannot_manage_membership(session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    newcomer = await create_user(session)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)

    with pytest.raises(NotAuthorized):
        await teams_service.add_team_member(session, actor=member, team_id=team.id, user_id=newcomer.id)


@pytest.mark.unit
@pytest.mark.service
async def test_delete_team_cascades(session: AsyncSession):
    """Deleting a team drops its memberships and every assignment naming it."""
    leader = await create_user(session)
    member = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)
    project = await create_project(session)
    task = await create_task(session, project)
    await assign_project(session, project, team)
    await assign_task(session, task, team)

    await teams_service.delete_team(session, actor=admin, team_id=team.id)
    await session.commit()

    memberships = await session.exec(select(TeamMember).where(TeamMember.team_id == team.id))
    project_rows = await session.exec(select(ProjectAssignment))
    task_rows = await session.exec(select(TaskAssignment))
    assert memberships.all() == []
    assert project_rows.all() == []
    assert task_rows.all() == []


@pytest.mark.unit
@pytest.mark.service
async def test_delete_team_checks_existence_first(session: AsyncSession):
    member = await create_user(session)

    with pytest.raises(NotFound):
        await teams_service.delete_team(session, actor=member, team_id=999)


@pytest.mark.unit
@pytest.mark.service
async def test_reassigning_leader_keeps_membership(session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)

    updated = await teams_service.update_team(session, actor=admin, team_id=team.id, leader_id=member.id)

    assert updated.leader_id == member.id
    result = await session.exec(select(TeamMember).where(TeamMember.team_id == team.id))
    assert [row.user_id for row in result.all()] == [member.id]


@pytest.mark.unit
@pytest.mark.service
async def test_list_teams_hides_unrelated_teams(session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    visible = await create_team(session, leader=leader, name="Visible")
    await create_team(session, leader=leader, name="Hidden")
    await add_team_member(session, visible, member)

    page = await teams_service.list_teams(session, user=member, opts=PaginationOpts(num_items=10))

    assert [team.name for team in page.items] == ["Visible"]
    assert page.items[0].member_count == 1
    assert page.is_done is True


@pytest.mark.unit
@pytest.mark.service
async def test_get_team_detail(session: AsyncSession):
    leader = await create_user(session, first_name="Lead")
    member = await create_user(session, first_name="Mem")
    outsider = await create_user(session)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)

    detail = await teams_service.get_team(session, user=member, team_id=team.id)

    assert detail.permission == PermissionLevel.member
    assert detail.leader.id == leader.id
    assert [m.id for m in detail.members] == [member.id]

    with pytest.raises(NotAuthorized):
        await teams_service.get_team(session, user=outsider, team_id=team.id)


@pytest.mark.unit
@pytest.mark.service
async def test_available_users_exclude_members_and_leader(session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    candidate = await create_user(session)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)

    page = await teams_service.get_available_users_for_team(
        session, user=leader, team_id=team.id, opts=PaginationOpts(num_items=10)
    )

    assert [user.id for user in page.items] == [candidate.id]


@pytest.mark.unit
@pytest.mark.service
async def test_concurrent_add_member_reports_duplicate(session: AsyncSession, session_factory, monkeypatch):
    """A membership committed after the duplicate check still yields DuplicateMembership."""
    leader = await create_user(session)
    user = await create_user(session)
    team = await create_team(session, leader=leader)
    team_id, user_id = team.id, user.id

    async def membership_written_elsewhere(*args, **kwargs):
        async with session_factory() as other:
            other.add(TeamMember(team_id=team_id, user_id=user_id))
            await other.commit()
        return None

    monkeypatch.setattr(teams_service, "_find_membership", membership_written_elsewhere)

    with pytest.raises(DuplicateMembership):
        await teams_service.add_team_member(session, actor=leader, team_id=team_id, user_id=user_id)

    rows = (await session.exec(select(TeamMember).where(TeamMember.team_id == team_id))).all()
    assert [row.user_id for row in rows] == [user_id]
