"""
===============================================================================
TARJETA CRC — useradmin/interfaces/api/http/routers/users.py
===============================================================================

Class/Module:
    Users Router

Responsibilities:
    - Exponer el CRUD HTTP de usuarios (list/show/store/update/destroy).
    - Pasar bodies y queries CRUDOS a los casos de uso (el shaper valida).
    - Traducir UserError -> RFC7807.
    - Envolver respuestas como {data, message}.

Collaborators:
    - useradmin.application.usecases.users
    - useradmin.identity.auth_users.require_actor
    - useradmin.container (factories DI)
    - schemas.users (DTOs Pydantic)
    - error_mapping.raise_user_error

Patterns:
    - Controller / Router (thin)
    - Adapter (HTTP -> UseCase)
===============================================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from .....application.usecases.users import (
    CreateUserUseCase,
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    UpdateUserUseCase,
)
from .....container import (
    get_create_user_use_case,
    get_delete_user_use_case,
    get_get_user_use_case,
    get_list_users_use_case,
    get_update_user_use_case,
)
from .....domain.user_policy import Actor
from .....identity.auth_users import require_actor
from ..error_mapping import raise_user_error
from ..schemas.users import UserDto, UserListResponse, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


def _user_response(user, message: str) -> UserResponse:
    return UserResponse(data=UserDto.from_record(user), message=message)


@router.get("", response_model=UserListResponse)
def list_users(
    request: Request,
    actor: Actor = Depends(require_actor()),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
) -> UserListResponse:
    """Lista usuarios (solo admin). Query: username, email, status, per_page, page."""
    result = use_case.execute(actor, dict(request.query_params))
    if result.error:
        raise_user_error(result.error)

    page = result.page
    return UserListResponse(
        data=[UserDto.from_record(u) for u in page.items],
        current_page=page.page,
        per_page=page.per_page,
        total=page.total,
        last_page=page.last_page,
        message="Users fetched successfully",
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: dict[str, Any] | None = Body(None),
    actor: Actor = Depends(require_actor()),
    use_case: CreateUserUseCase = Depends(get_create_user_use_case),
) -> UserResponse:
    result = use_case.execute(actor, payload)
    if result.error:
        raise_user_error(result.error)
    return _user_response(result.user, "User created successfully")


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    actor: Actor = Depends(require_actor()),
    use_case: GetUserUseCase = Depends(get_get_user_use_case),
) -> UserResponse:
    result = use_case.execute(actor, user_id)
    if result.error:
        raise_user_error(result.error, user_id=user_id)
    return _user_response(result.user, "User fetched successfully")


@router.api_route("/{user_id}", methods=["PUT", "PATCH"], response_model=UserResponse)
def update_user(
    user_id: int,
    payload: dict[str, Any] | None = Body(None),
    actor: Actor = Depends(require_actor()),
    use_case: UpdateUserUseCase = Depends(get_update_user_use_case),
) -> UserResponse:
    result = use_case.execute(actor, user_id, payload)
    if result.error:
        raise_user_error(result.error, user_id=user_id)
    return _user_response(result.user, "User updated successfully")


@router.delete("/{user_id}", response_model=UserResponse)
def delete_user(
    user_id: int,
    actor: Actor = Depends(require_actor()),
    use_case: DeleteUserUseCase = Depends(get_delete_user_use_case),
) -> UserResponse:
    result = use_case.execute(actor, user_id)
    if result.error:
        raise_user_error(result.error, user_id=user_id)
    return _user_response(result.user, "User deleted successfully")
