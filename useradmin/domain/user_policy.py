"""
===============================================================================
TARJETA CRC — domain/user_policy.py
===============================================================================

Módulo:
    Política de Acceso a Usuarios (ownership + override admin)

Responsabilidades:
    - Decidir si un actor puede ejecutar una operación sobre un usuario.
    - Aplicar el override global de admin antes de cualquier regla.
    - Ser 100% testeable: función pura, sin DB, sin FastAPI, sin excepciones.

Colaboradores:
    - domain.entities.UserRecord (solo se usa `id` del target)
    - application/usecases/users: consultan `decide()` antes de shaping/persistencia.

Reglas (intención):
    - Admin puede todo (incluso abilities no catalogadas).
    - Un usuario normal solo puede ver y editar su propia cuenta.
    - Un usuario normal nunca cambia un status (ni el propio).
    - Todo lo no catalogado se deniega.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Protocol


class UserAbility(str, Enum):
    """Operaciones sobre usuarios sujetas a autorización."""

    VIEW_ANY = "viewAny"
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_STATUS = "updateStatus"
    DELETE = "delete"
    RESTORE = "restore"
    FORCE_DELETE = "forceDelete"


class Identified(Protocol):
    id: int


class _HasRole(Protocol):
    id: int

    @property
    def is_admin(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class Actor:
    """Usuario autenticado que origina el request."""

    id: int
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: _HasRole) -> "Actor":
        return cls(id=user.id, is_admin=bool(user.is_admin))


_Rule = Callable[[Actor, Optional[Identified]], bool]


def _deny(actor: Actor, target: Identified | None) -> bool:
    return False


def _is_self(actor: Actor, target: Identified | None) -> bool:
    return target is not None and actor.id == target.id


# R: tabla de decisión de solo lectura; se consulta únicamente para no-admins.
_ABILITY_RULES: Mapping[UserAbility, _Rule] = MappingProxyType(
    {
        UserAbility.VIEW_ANY: _deny,
        UserAbility.VIEW: _is_self,
        UserAbility.CREATE: _deny,
        UserAbility.UPDATE: _is_self,
        UserAbility.UPDATE_STATUS: _deny,
        UserAbility.DELETE: _deny,
        UserAbility.RESTORE: _deny,
        UserAbility.FORCE_DELETE: _deny,
    }
)


def _coerce_ability(ability: UserAbility | str) -> UserAbility | None:
    if isinstance(ability, UserAbility):
        return ability
    try:
        return UserAbility(ability)
    except ValueError:
        return None


def decide(
    actor: Actor,
    ability: UserAbility | str,
    target: Identified | None = None,
) -> bool:
    """
    Evalúa si `actor` puede ejecutar `ability` sobre `target`.

    Notas:
      - Total: nunca lanza; abilities desconocidas se deniegan (salvo admin).
      - `target` es None para operaciones de colección (viewAny, create).
    """
    if actor.is_admin:
        return True

    resolved = _coerce_ability(ability)
    if resolved is None:
        return False

    rule = _ABILITY_RULES.get(resolved, _deny)
    return rule(actor, target)


def status_change_requested(payload: Mapping[str, Any], target: Any) -> bool:
    """
    True si el payload shapeado trae un status explícito distinto al actual.

    Dispara el chequeo adicional de `updateStatus` en la actualización.
    """
    if "status" not in payload or payload["status"] is None:
        return False
    return payload["status"] != getattr(target, "status", None)
