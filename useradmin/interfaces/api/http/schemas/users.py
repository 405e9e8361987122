"""
===============================================================================
TARJETA CRC — schemas/users.py
===============================================================================

Módulo:
    Schemas HTTP para Usuarios y Auth

Responsabilidades:
    - Definir DTOs de response ({data, message} y listados paginados).
    - Definir el request de login.
    - Garantizar que ningún DTO expone password ni password_hash.

Notas:
    - Los bodies de create/update NO se modelan con Pydantic: llegan crudos
      al UserInputShaper, que reporta todos los errores por campo.

Colaboradores:
    - domain.entities.UserStatus / UserRole
    - application.input_shaping.shape_output
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .....application.input_shaping import shape_output
from .....domain.entities import UserRecord, UserRole, UserStatus


class UserDto(BaseModel):
    """Vista pública de un usuario (sin password)."""

    id: int
    username: str
    email: str
    status: UserStatus
    role: UserRole
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserDto":
        return cls.model_validate(shape_output(user.attributes()))


class UserResponse(BaseModel):
    data: UserDto
    message: str


class UserListResponse(BaseModel):
    data: list[UserDto]
    current_page: int
    per_page: int
    total: int
    last_page: int
    message: str


class LoginReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class LoginRes(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserDto
