"""Assignment rows shared by projects and tasks.

Every helper takes the assignment model (``ProjectAssignment`` or
``TaskAssignment``) and the id of the resource it hangs off. The model's
``resource_field`` names the foreign key column.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import List, Optional, Type, Union

from sqlalchemy.exc import IntegrityError
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.messages import AssignmentMessages, TeamMessages, UserMessages
from teamdeck.models.project import AssigneeType, ProjectAssignment
from teamdeck.models.task import TaskAssignment
from teamdeck.models.team import Team
from teamdeck.models.user import ExternalIdentity, User
from teamdeck.schemas.assignee import AssigneeRead, TeamAssignee, UserAssignee
from teamdeck.services.errors import DuplicateAssignment, NotFound

AssignmentRow = Union[ProjectAssignment, TaskAssignment]
AssignmentModel = Union[Type[ProjectAssignment], Type[TaskAssignment]]
AnyAssignee = Union[TeamAssignee, UserAssignee]

ASSIGNMENT_MODELS: tuple[AssignmentModel, ...] = (ProjectAssignment, TaskAssignment)


def _resource_column(model: AssignmentModel):
    return getattr(model, model.resource_field)


def assignee_of(row: AssignmentRow) -> AnyAssignee:
    if row.assignee_type == AssigneeType.team:
        return TeamAssignee(id=row.assignee_id)
    if row.assignee_type == AssigneeType.user:
        return UserAssignee(id=row.assignee_id)
    raise ValueError(f"Unknown assignee type: {row.assignee_type!r}")


def assignee_type_of(assignee: AnyAssignee) -> AssigneeType:
    if isinstance(assignee, TeamAssignee):
        return AssigneeType.team
    if isinstance(assignee, UserAssignee):
        return AssigneeType.user
    raise ValueError(f"Unknown assignee: {assignee!r}")


def names_user(assignments: Iterable[AssignmentRow], user_id: int) -> bool:
    return any(
        isinstance(assignee_of(row), UserAssignee) and row.assignee_id == user_id
        for row in assignments
    )


def names_any_team(assignments: Iterable[AssignmentRow], team_ids: Iterable[int]) -> bool:
    wanted = set(team_ids)
    if not wanted:
        return False
    return any(
        isinstance(assignee_of(row), TeamAssignee) and row.assignee_id in wanted
        for row in assignments
    )


def assigned_ids(assignments: Iterable[AssignmentRow], assignee_type: AssigneeType) -> set[int]:
    return {row.assignee_id for row in assignments if row.assignee_type == assignee_type}


async def list_assignments(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    resource_id: int,
) -> List[AssignmentRow]:
    stmt = select(model).where(_resource_column(model) == resource_id).order_by(model.id)
    result = await session.exec(stmt)
    return list(result.all())


async def get_assignment(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    assignment_id: int,
) -> Optional[AssignmentRow]:
    return await session.get(model, assignment_id)


async def has_direct_user_assignment(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    resource_id: int,
    user_id: int,
) -> bool:
    stmt = select(model.id).where(
        _resource_column(model) == resource_id,
        model.assignee_type == AssigneeType.user,
        model.assignee_id == user_id,
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def has_team_assignment(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    resource_id: int,
    team_ids: Sequence[int],
) -> bool:
    if not team_ids:
        return False
    stmt = select(model.id).where(
        _resource_column(model) == resource_id,
        model.assignee_type == AssigneeType.team,
        model.assignee_id.in_(list(team_ids)),
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def ensure_assignee_exists(session: AsyncSession, assignee: AnyAssignee) -> None:
    if isinstance(assignee, TeamAssignee):
        if await session.get(Team, assignee.id) is None:
            raise NotFound(TeamMessages.NOT_FOUND)
        return
    if isinstance(assignee, UserAssignee):
        if await session.get(User, assignee.id) is None:
            raise NotFound(UserMessages.NOT_FOUND)
        return
    raise ValueError(f"Unknown assignee: {assignee!r}")


async def assign(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    resource_id: int,
    assignee: AnyAssignee,
    duplicate_message: str,
) -> AssignmentRow:
    """Insert an assignment row, rejecting missing assignees and duplicates."""
    await ensure_assignee_exists(session, assignee)
    assignee_type = assignee_type_of(assignee)

    existing = await list_assignments(session, model, resource_id=resource_id)
    for row in existing:
        if row.assignee_type == assignee_type and row.assignee_id == assignee.id:
            raise DuplicateAssignment(duplicate_message)

    row = model(
        **{model.resource_field: resource_id},
        assignee_type=assignee_type,
        assignee_id=assignee.id,
    )
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateAssignment(duplicate_message) from exc
    await session.refresh(row)
    return row


async def unassign(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    assignment_id: int,
) -> AssignmentRow:
    row = await session.get(model, assignment_id)
    if row is None:
        raise NotFound(AssignmentMessages.NOT_FOUND)
    await session.delete(row)
    await session.flush()
    return row


async def delete_resource_assignments(
    session: AsyncSession,
    model: AssignmentModel,
    *,
    resource_ids: Sequence[int],
) -> None:
    if not resource_ids:
        return
    await session.exec(delete(model).where(_resource_column(model).in_(list(resource_ids))))


async def delete_assignee_assignments(session: AsyncSession, assignee: AnyAssignee) -> None:
    """Remove every project and task assignment that names ``assignee``."""
    assignee_type = assignee_type_of(assignee)
    for model in ASSIGNMENT_MODELS:
        await session.exec(
            delete(model).where(
                model.assignee_type == assignee_type,
                model.assignee_id == assignee.id,
            )
        )


async def resolve_assignees(
    session: AsyncSession,
    assignments: Iterable[AssignmentRow],
) -> List[AssigneeRead]:
    """Attach display names to assignment rows, skipping dangling references."""
    resolved: List[AssigneeRead] = []
    for row in assignments:
        assignee = assignee_of(row)
        if isinstance(assignee, TeamAssignee):
            team = await session.get(Team, assignee.id)
            if team is None:
                continue
            resolved.append(
                AssigneeRead(
                    assignment_id=row.id,
                    type=AssigneeType.team,
                    id=team.id,
                    name=team.name,
                )
            )
        elif isinstance(assignee, UserAssignee):
            user = await session.get(User, assignee.id)
            if user is None:
                continue
            identity = await session.get(ExternalIdentity, user.identity_id)
            resolved.append(
                AssigneeRead(
                    assignment_id=row.id,
                    type=AssigneeType.user,
                    id=user.id,
                    name=identity.display_name if identity else "Unknown",
                    image_url=identity.image_url if identity else None,
                )
            )
    return resolved
