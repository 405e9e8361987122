# useradmin/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Errores internos de infraestructura
===============================================================================

Las capas de infraestructura (Postgres, servicio de passwords filtrados)
lanzan estas excepciones; api/exception_handlers.py decide el status HTTP.
Los errores de negocio NO viven acá: los use cases devuelven UserError.

  UserAdminError          -> 500
  ├── DatabaseError       -> 503
  │   └── DuplicateUserError -> 422 (carrera contra la constraint UNIQUE)
  └── BreachCheckError    -> 503 (fail-closed)

Cada instancia lleva un `error_id` que aparece en el log del handler.
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class UserAdminError(Exception):
    error_code: str = "USER_ADMIN_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_id = error_id if error_id else uuid4().hex
        self.original_error = original_error

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class DatabaseError(UserAdminError):
    error_code = "DATABASE_ERROR"


class DuplicateUserError(DatabaseError):
    """`field` es la columna cuya constraint UNIQUE rechazó el write."""

    error_code = "DUPLICATE_USER"

    def __init__(self, field: str, message: str | None = None, **kwargs):
        self.field = field
        super().__init__(message or f"users.{field} ya existe", **kwargs)


class BreachCheckError(UserAdminError):
    error_code = "BREACH_CHECK_ERROR"
