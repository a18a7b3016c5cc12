"""
Unit tests for the shared assignment helpers.

Tests the logic in teamdeck.services.assignments including:
- Duplicate assignment rejection
- Missing assignee rejection
- Unassigning absent rows
- Display name resolution for assignees
"""

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.models.project import AssigneeType, ProjectAssignment
from teamdeck.models.task import TaskAssignment
from teamdeck.schemas.assignee import TeamAssignee, UserAssignee
from teamdeck.services import assignments as assignments_service
from teamdeck.services.errors import DuplicateAssignment, NotFound
from teamdeck.testing.factories import (
    assign_project,
    assign_task,
    create_project,
    create_task,
    create_team,
    create_user,
)


@pytest.mark.unit
@pytest.mark.service
async def test_assign_twice_raises_duplicate(session: AsyncSession):
    """Second identical assignment fails and leaves one row behind."""
    user = await create_user(session)
    project = await create_project(session)

    await assignments_service.assign(
        session,
        ProjectAssignment,
        resource_id=project.id,
        assignee=UserAssignee(id=user.id),
        duplicate_message="dup",
    )
    with pytest.raises(DuplicateAssignment, match="dup"):
        await assignments_service.assign(
            session,
            ProjectAssignment,
            resource_id=project.id,
            assignee=UserAssignee(id=user.id),
            duplicate_message="dup",
        )

    rows = await assignments_service.list_assignments(session, ProjectAssignment, resource_id=project.id)
    assert len(rows) == 1
    assert rows[0].assignee_type == AssigneeType.user
    assert rows[0].assignee_id == user.id


@pytest.mark.unit
@pytest.mark.service
async def test_concurrent_assign_reports_duplicate(session: AsyncSession, session_factory, monkeypatch):
    """A row committed after the duplicate check still yields DuplicateAssignment."""
    user = await create_user(session)
    project = await create_project(session)
    project_id, user_id = project.id, user.id

    async def assignment_written_elsewhere(*args, **kwargs):
        async with session_factory() as other:
            other.add(
                ProjectAssignment(project_id=project_id, assignee_type=AssigneeType.user, assignee_id=user_id)
            )
            await other.commit()
        return []

    monkeypatch.setattr(assignments_service, "list_assignments", assignment_written_elsewhere)

    with pytest.raises(DuplicateAssignment, match="dup"):
        await assignments_service.assign(
            session,
            ProjectAssignment,
            resource_id=project_id,
            assignee=UserAssignee(id=user_id),
            duplicate_message="dup",
        )

    rows = (await session.exec(select(ProjectAssignment).where(ProjectAssignment.project_id == project_id))).all()
    assert [(row.assignee_type, row.assignee_id) for row in rows] == [(AssigneeType.user, user_id)]


@pytest.mark.unit
@pytest.mark.service
async def test_same_id_different_type_is_not_duplicate(session: AsyncSession):
    """A team and a user sharing an id are distinct assignees."""
    leader = await create_user(session)
    team = await create_team(session, leader=leader)
    project = await create_project(session)
    await assign_project(session, project, team)

    row = await assignments_service.assign(
        session,
        ProjectAssignment,
        resource_id=project.id,
        assignee=UserAssignee(id=leader.id),
        duplicate_message="dup",
    )

    assert row.id is not None
    rows = await assignments_service.list_assignments(session, ProjectAssignment, resource_id=project.id)
    assert len(rows) == 2


@pytest.mark.unit
@pytest.mark.service
async def test_assign_missing_assignee_raises_not_found(session: AsyncSession):
    project = await create_project(session)

    with pytest.raises(NotFound):
        await assignments_service.assign(
            session,
            ProjectAssignment,
            resource_id=project.id,
            assignee=TeamAssignee(id=999),
            duplicate_message="dup",
        )
    with pytest.raises(NotFound):
        await assignments_service.assign(
            session,
            ProjectAssignment,
            resource_id=project.id,
            assignee=UserAssignee(id=999),
            duplicate_message="dup",
        )


@pytest.mark.unit
@pytest.mark.service
async def test_unassign_twice_raises_not_found(session: AsyncSession):
    user = await create_user(session)
    project = await create_project(session)
    task = await create_task(session, project)
    row = await assign_task(session, task, user)

    await assignments_service.unassign(session, TaskAssignment, assignment_id=row.id)
    await session.commit()

    with pytest.raises(NotFound):
        await assignments_service.unassign(session, TaskAssignment, assignment_id=row.id)


@pytest.mark.unit
@pytest.mark.service
async def test_delete_assignee_assignments_covers_both_kinds(session: AsyncSession):
    """Removing an assignee clears project and task rows that name it."""
    user = await create_user(session)
    other = await create_user(session)
    project = await create_project(session)
    task = await create_task(session, project)
    await assign_project(session, project, user)
    await assign_task(session, task, user)
    await assign_task(session, task, other)

    await assignments_service.delete_assignee_assignments(session, UserAssignee(id=user.id))
    await session.commit()

    project_rows = await assignments_service.list_assignments(
        session, ProjectAssignment, resource_id=project.id
    )
    task_rows = await assignments_service.list_assignments(session, TaskAssignment, resource_id=task.id)
    assert project_rows == []
    assert [row.assignee_id for row in task_rows] == [other.id]


@pytest.mark.unit
@pytest.mark.service
async def test_resolve_assignees_names_teams_and_users(session: AsyncSession):
    user = await create_user(session, first_name="Grace", last_name="Hopper")
    team = await create_team(session, leader=user, name="Compilers")
    project = await create_project(session)
    await assign_project(session, project, team)
    await assign_project(session, project, user)

    rows = await assignments_service.list_assignments(session, ProjectAssignment, resource_id=project.id)
    resolved = await assignments_service.resolve_assignees(session, rows)

    assert [(item.type, item.name) for item in resolved] == [
        (AssigneeType.team, "Compilers"),
        (AssigneeType.user, "Grace Hopper"),
    ]
    assert all(item.assignment_id for item in resolved)
