import asyncio
import logging

from sqlmodel import select

from teamdeck.core.config import settings
from teamdeck.db.session import AsyncSessionLocal
from teamdeck.models.user import ExternalIdentity, User, UserRole

logger = logging.getLogger(__name__)


async def init_first_owner() -> None:
    """Link the configured identity subject to an owner account.

    Does nothing when ``FIRST_OWNER_SUBJECT`` is unset or an owner already exists.
    """
    if not settings.FIRST_OWNER_SUBJECT:
        return

    async with AsyncSessionLocal() as session:
        result = await session.exec(select(User).where(User.role == UserRole.owner))
        if result.first() is not None:
            return

        result = await session.exec(
            select(ExternalIdentity).where(ExternalIdentity.subject == settings.FIRST_OWNER_SUBJECT)
        )
        identity = result.one_or_none()
        if identity is None:
            identity = ExternalIdentity(
                subject=settings.FIRST_OWNER_SUBJECT,
                email=settings.FIRST_OWNER_EMAIL,
            )
            session.add(identity)
            await session.flush()

        result = await session.exec(select(User).where(User.identity_id == identity.id))
        user = result.one_or_none()
        if user is None:
            session.add(User(identity_id=identity.id, role=UserRole.owner))
        else:
            user.role = UserRole.owner
            session.add(user)
        await session.commit()
        logger.info("Seeded owner account for subject %s", settings.FIRST_OWNER_SUBJECT)


if __name__ == "__main__":  # pragma: no cover
    asyncio.run(init_first_owner())
