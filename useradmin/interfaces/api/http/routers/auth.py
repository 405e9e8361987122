"""
===============================================================================
TARJETA CRC — useradmin/interfaces/api/http/routers/auth.py
===============================================================================

Responsabilidades:
  - POST /auth/login: valida credenciales y emite JWT (también como cookie).
  - GET /user: devuelve el usuario autenticado.

Colaboradores:
  - identity.auth_users (authenticate_user, create_access_token, require_user)
  - schemas.users (LoginReq, LoginRes, UserDto)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from .....crosscutting.config import get_settings
from .....crosscutting.error_responses import unauthorized
from .....crosscutting.logger import logger
from .....domain.entities import UserRecord
from .....identity.auth_users import (
    authenticate_user,
    create_access_token,
    require_user,
)
from ..schemas.users import LoginReq, LoginRes, UserDto

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=LoginRes)
def login(req: LoginReq, response: Response) -> LoginRes:
    user = authenticate_user(req.email, req.password)
    if user is None:
        logger.info("Login rechazado")
        raise unauthorized("Credenciales inválidas.")

    token, expires_in = create_access_token(user)
    settings = get_settings()
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=token,
        max_age=expires_in,
        httponly=True,
        secure=settings.is_production(),
        samesite="lax",
    )
    logger.info("Login exitoso", extra={"user_id": user.id})
    return LoginRes(
        access_token=token, expires_in=expires_in, user=UserDto.from_record(user)
    )


@router.get("/user", response_model=UserDto)
def current_user(user: UserRecord = Depends(require_user())) -> UserDto:
    return UserDto.from_record(user)
