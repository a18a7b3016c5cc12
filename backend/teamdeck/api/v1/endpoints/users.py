from fastapi import APIRouter, status

from teamdeck.api.deps import CurrentUser, PaginationDep, SessionDep, http_error_from, page_response
from teamdeck.db.pagination import InvalidCursor
from teamdeck.models.user import UserRole
from teamdeck.schemas.pagination import Page
from teamdeck.schemas.user import UserRead, UserRoleUpdate, UserSummary
from teamdeck.services import users as users_service
from teamdeck.services.errors import ServiceError

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def read_me(session: SessionDep, current_user: CurrentUser) -> UserRead:
    return await users_service.get_me(session, user=current_user)


@router.get("/", response_model=Page[UserSummary])
async def list_users(session: SessionDep, current_user: CurrentUser, pagination: PaginationDep) -> dict:
    try:
        result = await users_service.list_users_for_assignment(session, opts=pagination)
    except InvalidCursor as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.get("/directory", response_model=Page[UserRead])
async def list_users_with_roles(session: SessionDep, current_user: CurrentUser, pagination: PaginationDep) -> dict:
    try:
        result = await users_service.list_users(session, actor=current_user, opts=pagination)
    except (ServiceError, InvalidCursor) as exc:
        raise http_error_from(exc) from exc
    return page_response(result)


@router.patch("/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: int,
    role_in: UserRoleUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> UserRead:
    try:
        user = await users_service.update_user_role(
            session,
            actor=current_user,
            user_id=user_id,
            role=UserRole(role_in.role),
        )
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
    await session.refresh(user)
    return await users_service.get_me(session, user=user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(user_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await users_service.remove_user(session, actor=current_user, user_id=user_id)
    except ServiceError as exc:
        raise http_error_from(exc) from exc

    await session.commit()
