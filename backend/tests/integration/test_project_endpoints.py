"""
Integration tests for project endpoints.

Tests the project API endpoints at /api/v1/projects including:
- Creating, updating and deleting projects
- Assigning teams and users
- Listing with filters and cursors
- Listing tasks of a project
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.models.task import TaskStatus
from teamdeck.models.user import UserRole
from teamdeck.testing.factories import (
    add_team_member,
    assign_project,
    create_project,
    create_task,
    create_team,
    create_user,
    get_auth_headers,
)


@pytest.mark.integration
async def test_admin_creates_project(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    headers = await get_auth_headers(session, admin)

    response = await client.post(
        "/api/v1/projects/",
        headers=headers,
        json={"name": "  Roadmap  ", "description": "Q3 plan"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Roadmap"
    assert data["created_by"] == admin.id
    assert data["permission"] == "admin"
    assert data["assignees"] == []
    assert data["task_stats"]["total"] == 0


@pytest.mark.integration
async def test_member_cannot_create_project(client: AsyncClient, session: AsyncSession):
    member = await create_user(session)
    headers = await get_auth_headers(session, member)

    response = await client.post("/api/v1/projects/", headers=headers, json={"name": "Nope"})

    assert response.status_code == 403


@pytest.mark.integration
async def test_blank_project_name_rejected(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    headers = await get_auth_headers(session, admin)

    response = await client.post("/api/v1/projects/", headers=headers, json={"name": "   "})

    assert response.status_code == 422


@pytest.mark.integration
async def test_get_project_access(client: AsyncClient, session: AsyncSession):
    leader = await create_user(session)
    outsider = await create_user(session)
    team = await create_team(session, leader=leader)
    project = await create_project(session, creator=leader)
    await assign_project(session, project, team)

    response = await client.get(f"/api/v1/projects/{project.id}", headers=await get_auth_headers(session, leader))
    assert response.status_code == 200
    data = response.json()
    assert data["permission"] == "team_leader"
    assert data["creator"]["id"] == leader.id
    assert [(a["type"], a["id"]) for a in data["assignees"]] == [("team", team.id)]

    response = await client.get(f"/api/v1/projects/{project.id}", headers=await get_auth_headers(session, outsider))
    assert response.status_code == 403

    response = await client.get("/api/v1/projects/999", headers=await get_auth_headers(session, outsider))
    assert response.status_code == 404


@pytest.mark.integration
async def test_assign_and_unassign_project(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    user = await create_user(session)
    project = await create_project(session)
    headers = await get_auth_headers(session, admin)

    response = await client.post(
        f"/api/v1/projects/{project.id}/assignments",
        headers=headers,
        json={"assignee": {"type": "user", "id": user.id}},
    )
    assert response.status_code == 201
    assignment_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/projects/{project.id}/assignments",
        headers=headers,
        json={"assignee": {"type": "user", "id": user.id}},
    )
    assert response.status_code == 409

    response = await client.delete(f"/api/v1/projects/assignments/{assignment_id}", headers=headers)
    assert response.status_code == 204

    response = await client.delete(f"/api/v1/projects/assignments/{assignment_id}", headers=headers)
    assert response.status_code == 404


@pytest.mark.integration
async def test_assign_unknown_assignee_type_rejected(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    project = await create_project(session)

    response = await client.post(
        f"/api/v1/projects/{project.id}/assignments",
        headers=await get_auth_headers(session, admin),
        json={"assignee": {"type": "group", "id": 1}},
    )

    assert response.status_code == 422


@pytest.mark.integration
async def test_update_and_delete_project(client: AsyncClient, session: AsyncSession):
    leader = await create_user(session)
    member = await create_user(session)
    team = await create_team(session, leader=leader)
    await add_team_member(session, team, member)
    project = await create_project(session)
    await assign_project(session, project, team)
    await create_task(session, project)

    response = await client.patch(
        f"/api/v1/projects/{project.id}",
        headers=await get_auth_headers(session, member),
        json={"name": "Mine now"},
    )
    assert response.status_code == 403

    leader_headers = await get_auth_headers(session, leader)
    response = await client.patch(
        f"/api/v1/projects/{project.id}",
        headers=leader_headers,
        json={"name": "Renamed"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["task_stats"]["total"] == 1

    response = await client.delete(f"/api/v1/projects/{project.id}", headers=leader_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/projects/{project.id}/tasks", headers=leader_headers)
    assert response.status_code == 200
    assert response.json() == {"page": [], "is_done": True, "continue_cursor": None}


@pytest.mark.integration
async def test_list_projects_paginates(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    headers = await get_auth_headers(session, admin)
    for index in range(3):
        await create_project(session, name=f"P{index}")

    response = await client.get("/api/v1/projects/", headers=headers, params={"num_items": 2})
    assert response.status_code == 200
    first = response.json()
    assert [p["name"] for p in first["page"]] == ["P2", "P1"]
    assert first["is_done"] is False

    response = await client.get(
        "/api/v1/projects/",
        headers=headers,
        params={"num_items": 2, "cursor": first["continue_cursor"]},
    )
    second = response.json()
    assert [p["name"] for p in second["page"]] == ["P0"]
    assert second["is_done"] is True


@pytest.mark.integration
async def test_list_projects_bad_cursor(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)

    response = await client.get(
        "/api/v1/projects/",
        headers=await get_auth_headers(session, admin),
        params={"cursor": "not-a-cursor"},
    )

    assert response.status_code == 400


@pytest.mark.integration
async def test_list_projects_team_filter(client: AsyncClient, session: AsyncSession):
    leader = await create_user(session)
    team = await create_team(session, leader=leader)
    team_project = await create_project(session, name="Team")
    await assign_project(session, team_project, team)
    direct_project = await create_project(session, name="Direct")
    await assign_project(session, direct_project, leader)

    response = await client.get(
        "/api/v1/projects/",
        headers=await get_auth_headers(session, leader),
        params={"filter": "team"},
    )

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["page"]] == ["Team"]


@pytest.mark.integration
async def test_list_project_tasks_by_status(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    project = await create_project(session)
    await create_task(session, project, name="Open")
    await create_task(session, project, name="Finished", status=TaskStatus.done)

    response = await client.get(
        f"/api/v1/projects/{project.id}/tasks",
        headers=await get_auth_headers(session, admin),
        params={"status": "done"},
    )

    assert response.status_code == 200
    assert [t["name"] for t in response.json()["page"]] == ["Finished"]


@pytest.mark.integration
async def test_available_users_for_project(client: AsyncClient, session: AsyncSession):
    admin = await create_user(session, role=UserRole.admin)
    assigned = await create_user(session)
    project = await create_project(session)
    await assign_project(session, project, assigned)

    response = await client.get(
        f"/api/v1/projects/{project.id}/available-users",
        headers=await get_auth_headers(session, admin),
    )

    assert response.status_code == 200
    ids = [u["id"] for u in response.json()["page"]]
    assert assigned.id not in ids
    assert admin.id in ids
