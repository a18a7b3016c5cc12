"""
Integration tests for task endpoints.

Tests the task API endpoints at /api/v1/tasks including:
- Creating tasks inside accessible projects
- Status-only updates for members
- Task assignment and deletion gates
- The personal task list
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import TaskMessages
from teamdeck.models.task import TaskStatus
from teamdeck.models.user import UserRole
from teamdeck.testing.factories import (
    add_team_member,
    assign_project,
    assign_task,
    create_project,
    create_task,
    create_team,
    create_user,
    get_auth_headers,
)


async def _setup(session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)
    project = await create_project(session, name="P1")
    await assign_project(session, project, team)
    task = await create_task(session, project, name="Task1")
    return leader, member, project, task


@pytest.mark.integration
async def test_member_creates_task(client: AsyncClient, session: AsyncSession):
    _, member, project, _ = await _setup(session)

    response = await client.post(
        "/api/v1/tasks/",
        headers=await get_auth_headers(session, member),
        json={"project_id": project.id, "name": "Write docs", "status": "todo"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Write docs"
    assert data["status"] == "todo"
    assert data["project_name"] == "P1"
    assert data["created_by"] == member.id
    assert data["permission"] == "member"


@pytest.mark.integration
async def test_outsider_cannot_create_task(client: AsyncClient, session: AsyncSession):
    _, _, project, _ = await _setup(session)
    outsider = await create_user(session)

    response = await client.post(
        "/api/v1/tasks/",
        headers=await get_auth_headers(session, outsider),
        json={"project_id": project.id, "name": "Sneaky"},
    )

    assert response.status_code == 403


@pytest.mark.integration
async def test_member_status_only(client: AsyncClient, session: AsyncSession):
    _, member, _, task = await _setup(session)
    headers = await get_auth_headers(session, member)

    response = await client.patch(f"/api/v1/tasks/{task.id}", headers=headers, json={"name": "x"})
    assert response.status_code == 403
    assert response.json()["detail"] == TaskMessages.MEMBERS_STATUS_ONLY

    response = await client.patch(f"/api/v1/tasks/{task.id}/status", headers=headers, json={"status": "done"})
    assert response.status_code == 200
    assert response.json()["status"] == "done"


@pytest.mark.integration
async def test_leader_updates_task(client: AsyncClient, session: AsyncSession):
    leader, _, _, task = await _setup(session)

    response = await client.patch(
        f"/api/v1/tasks/{task.id}",
        headers=await get_auth_headers(session, leader),
        json={"name": "Renamed", "status": "in_progress"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["status"] == "in_progress"
    assert data["permission"] == "team_leader"


@pytest.mark.integration
async def test_invalid_status_rejected(client: AsyncClient, session: AsyncSession):
    leader, _, _, task = await _setup(session)

    response = await client.patch(
        f"/api/v1/tasks/{task.id}/status",
        headers=await get_auth_headers(session, leader),
        json={"status": "archived"},
    )

    assert response.status_code == 422


@pytest.mark.integration
async def test_task_assignment_gates(client: AsyncClient, session: AsyncSession):
    leader, member, _, task = await _setup(session)
    await assign_task(session, task, member)

    response = await client.post(
        f"/api/v1/tasks/{task.id}/assignments",
        headers=await get_auth_headers(session, member),
        json={"assignee": {"type": "user", "id": leader.id}},
    )
    assert response.status_code == 403

    leader_headers = await get_auth_headers(session, leader)
    response = await client.post(
        f"/api/v1/tasks/{task.id}/assignments",
        headers=leader_headers,
        json={"assignee": {"type": "user", "id": member.id}},
    )
    assert response.status_code == 409

    response = await client.get(f"/api/v1/tasks/{task.id}", headers=leader_headers)
    assignees = response.json()["assignees"]
    assert [(a["type"], a["id"]) for a in assignees] == [("user", member.id)]

    response = await client.delete(
        f"/api/v1/tasks/assignments/{assignees[0]['assignment_id']}",
        headers=leader_headers,
    )
    assert response.status_code == 204


@pytest.mark.integration
async def test_delete_task(client: AsyncClient, session: AsyncSession):
    leader, member, _, task = await _setup(session)

    response = await client.delete(f"/api/v1/tasks/{task.id}", headers=await get_auth_headers(session, member))
    assert response.status_code == 403

    leader_headers = await get_auth_headers(session, leader)
    response = await client.delete(f"/api/v1/tasks/{task.id}", headers=leader_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/tasks/{task.id}", headers=leader_headers)
    assert response.status_code == 404


@pytest.mark.integration
async def test_my_tasks(client: AsyncClient, session: AsyncSession):
    _, member, project, task = await _setup(session)
    other_project = await create_project(session, name="Other")
    assigned = await create_task(session, other_project, name="Assigned", status=TaskStatus.review)
    await create_task(session, other_project, name="Unrelated")
    await assign_task(session, assigned, member)
    headers = await get_auth_headers(session, member)

    response = await client.get("/api/v1/tasks/mine", headers=headers)
    assert response.status_code == 200
    assert [t["name"] for t in response.json()["page"]] == ["Assigned", "Task1"]

    response = await client.get("/api/v1/tasks/mine", headers=headers, params={"status": "review"})
    assert [t["name"] for t in response.json()["page"]] == ["Assigned"]

    response = await client.get("/api/v1/tasks/mine", headers=headers, params={"project_id": project.id})
    assert [t["id"] for t in response.json()["page"]] == [task.id]


@pytest.mark.integration
async def test_admin_reads_any_task(client: AsyncClient, session: AsyncSession):
    _, _, _, task = await _setup(session)
    admin = await create_user(session, role=UserRole.admin)

    response = await client.get(f"/api/v1/tasks/{task.id}", headers=await get_auth_headers(session, admin))

    assert response.status_code == 200
    assert response.json()["permission"] == "admin"
