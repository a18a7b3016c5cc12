from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.models.team import Team, TeamMember


async def is_team_leader(session: AsyncSession, *, user_id: int, team_id: int) -> bool:
    team = await session.get(Team, team_id)
    if team is None:
        return False
    return team.leader_id == user_id


async def is_team_member(session: AsyncSession, *, user_id: int, team_id: int) -> bool:
    """True only when a membership row exists; leadership alone does not count."""
    stmt = select(TeamMember.id).where(
        TeamMember.team_id == team_id,
        TeamMember.user_id == user_id,
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def get_led_team_ids(session: AsyncSession, *, user_id: int) -> List[int]:
    result = await session.exec(select(Team.id).where(Team.leader_id == user_id))
    return list(result.all())


async def is_any_team_leader(session: AsyncSession, *, user_id: int) -> bool:
    result = await session.exec(select(Team.id).where(Team.leader_id == user_id).limit(1))
    return result.first() is not None


async def get_user_team_ids(session: AsyncSession, *, user_id: int) -> List[int]:
    """Teams the user belongs to as a member or as the leader, without duplicates."""
    result = await session.exec(select(TeamMember.team_id).where(TeamMember.user_id == user_id))
    team_ids = list(result.all())
    for team_id in await get_led_team_ids(session, user_id=user_id):
        if team_id not in team_ids:
            team_ids.append(team_id)
    return team_ids
