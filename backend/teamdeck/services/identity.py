from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jose import JWTError
from pydantic import ValidationError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.security import decode_identity_token
from teamdeck.models.user import ExternalIdentity, User

logger = logging.getLogger(__name__)


class IdentityStatus(str, Enum):
    anonymous = "anonymous"
    invalid = "invalid"
    unlinked = "unlinked"
    authenticated = "authenticated"


@dataclass
class ResolvedIdentity:
    status: IdentityStatus
    subject: Optional[str] = None
    identity: Optional[ExternalIdentity] = None
    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == IdentityStatus.authenticated


async def get_identity_by_subject(session: AsyncSession, subject: str) -> Optional[ExternalIdentity]:
    result = await session.exec(select(ExternalIdentity).where(ExternalIdentity.subject == subject))
    return result.one_or_none()


async def get_user_by_subject(session: AsyncSession, subject: str) -> Optional[User]:
    stmt = (
        select(User)
        .join(ExternalIdentity, ExternalIdentity.id == User.identity_id)
        .where(ExternalIdentity.subject == subject)
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def resolve_identity(session: AsyncSession, token: Optional[str]) -> ResolvedIdentity:
    """Map a bearer token to the registered user behind it.

    Never raises for a bad or missing token; the status says what went wrong.
    """
    if not token:
        return ResolvedIdentity(status=IdentityStatus.anonymous)

    try:
        payload = decode_identity_token(token)
    except (JWTError, ValidationError):
        logger.debug("Rejected identity token", exc_info=True)
        return ResolvedIdentity(status=IdentityStatus.invalid)

    if not payload.sub:
        return ResolvedIdentity(status=IdentityStatus.invalid)

    identity = await get_identity_by_subject(session, payload.sub)
    if identity is None:
        return ResolvedIdentity(status=IdentityStatus.unlinked, subject=payload.sub)

    result = await session.exec(select(User).where(User.identity_id == identity.id))
    user = result.one_or_none()
    if user is None:
        return ResolvedIdentity(status=IdentityStatus.unlinked, subject=payload.sub, identity=identity)

    return ResolvedIdentity(
        status=IdentityStatus.authenticated,
        subject=payload.sub,
        identity=identity,
        user=user,
    )
