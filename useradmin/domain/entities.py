"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (UserRecord, UserStatus, UserRole)

Responsabilidades:
    - Definir la cuenta de usuario tal como la persiste el sistema.
    - Definir el catálogo cerrado de estados y roles.
    - Brindar helpers mínimos de presentación (label/color) para listados admin.

Colaboradores:
    - domain.repositories: persisten/recuperan UserRecord.
    - domain.user_policy: decide sobre UserRecord (solo usa `id`).
    - interfaces/api: serializa UserRecord a UserDto (sin password).

Principios:
    - Sin dependencias a DB/FastAPI.
    - `password_hash` nunca sale de la capa de persistencia/identity.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserStatus(str, Enum):
    """Estado del ciclo de vida de una cuenta."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return _STATUS_COLORS[self]

    @property
    def can_authenticate(self) -> bool:
        # R: solo cuentas activas pueden loguearse.
        return self is UserStatus.ACTIVE


_STATUS_COLORS = {
    UserStatus.ACTIVE: "green",
    UserStatus.INACTIVE: "gray",
    UserStatus.SUSPENDED: "red",
    UserStatus.PENDING: "yellow",
}


class UserRole(str, Enum):
    """Roles soportados. Solo ADMIN tiene override global en la policy."""

    ADMIN = "admin"
    MEMBER = "member"


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Cuenta de usuario persistida.

    Notas:
      - Inmutable: los repositorios devuelven una instancia nueva en cada write.
      - `password_hash` es un hash Argon2, nunca la contraseña en claro.
    """

    id: int
    username: str
    email: str
    password_hash: str
    status: UserStatus = UserStatus.ACTIVE
    role: UserRole = UserRole.MEMBER
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def attributes(self) -> dict:
        """Todos los atributos, hash incluido (lo filtra shape_output)."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "status": self.status,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
