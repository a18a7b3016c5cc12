from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from teamdeck.core.config import settings
from teamdeck.core.messages import AuthMessages
from teamdeck.db.pagination import InvalidCursor, PageResult
from teamdeck.db.session import get_session, get_session_factory
from teamdeck.models.user import User
from teamdeck.schemas.pagination import PaginationOpts
from teamdeck.services import identity as identity_service
from teamdeck.services.errors import (
    DuplicateAssignment,
    DuplicateMembership,
    InvariantViolation,
    NotAuthenticated,
    NotAuthorized,
    NotFound,
    ServiceError,
)

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SessionFactoryDep = Annotated[sessionmaker, Depends(get_session_factory)]

bearer_scheme = HTTPBearer(auto_error=False)

_UNAUTHENTICATED_DETAILS = {
    identity_service.IdentityStatus.anonymous: AuthMessages.NOT_AUTHENTICATED,
    identity_service.IdentityStatus.invalid: AuthMessages.INVALID_TOKEN,
    identity_service.IdentityStatus.unlinked: AuthMessages.NOT_REGISTERED,
}


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    session: SessionDep,
) -> User:
    token = credentials.credentials if credentials else None
    resolved = await identity_service.resolve_identity(session, token)
    if not resolved.is_authenticated:
        exc = NotAuthenticated(_UNAUTHENTICATED_DETAILS[resolved.status])
        raise http_error_from(exc) from exc
    return resolved.user


CurrentUser = Annotated[User, Depends(get_current_user)]


def pagination_params(
    num_items: Optional[int] = Query(default=None, ge=1),
    cursor: Optional[str] = Query(default=None),
) -> PaginationOpts:
    size = num_items or settings.DEFAULT_PAGE_SIZE
    return PaginationOpts(num_items=min(size, settings.MAX_PAGE_SIZE), cursor=cursor)


PaginationDep = Annotated[PaginationOpts, Depends(pagination_params)]


def http_error_from(exc: Exception) -> HTTPException:
    """Translate a service or cursor error into the matching HTTP response."""
    if isinstance(exc, NotAuthenticated):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, NotAuthorized):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (DuplicateAssignment, DuplicateMembership)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (InvariantViolation, InvalidCursor)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ServiceError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        raise TypeError(f"Unhandled error type: {type(exc).__name__}") from exc
    return HTTPException(status_code=code, detail=str(exc))


def page_response(result: PageResult) -> dict:
    return {
        "page": result.items,
        "is_done": result.is_done,
        "continue_cursor": result.continue_cursor,
    }
