"""
===============================================================================
USER USE CASE RESULTS
===============================================================================

Los use cases de usuarios no lanzan excepciones por reglas de negocio:
devuelven UserResult / UserListResult con `error` poblado. La capa HTTP
(interfaces/api/http/error_mapping.py) los traduce a 422, 403 o 404.

  UserErrorCode.VALIDATION_ERROR -> `errors` trae {campo: [mensajes]}
  UserErrorCode.FORBIDDEN        -> la policy dijo que no
  UserErrorCode.NOT_FOUND        -> el usuario objetivo no existe
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ....domain.entities import UserRecord
from ....domain.repositories import UserPage


class UserErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: payload inválido (ver `errors`).
      - FORBIDDEN: la policy rechazó la operación.
      - NOT_FOUND: el usuario target no existe.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class UserError:
    """
    Error de caso de uso.

    `errors` solo se completa en VALIDATION_ERROR: {campo: [mensajes]}.
    """

    code: UserErrorCode
    message: str
    errors: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class UserResult:
    """
    Contrato:
      - Si error is None => user presente (éxito)
      - Si error != None => user None
    """

    user: UserRecord | None = None
    error: UserError | None = None


@dataclass
class UserListResult:
    page: UserPage | None = None
    error: UserError | None = None
