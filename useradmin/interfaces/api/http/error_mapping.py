"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir UserError de los casos de uso a HTTP Exceptions RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Colaboradores:
  - application.usecases.users (UserError, UserErrorCode)
  - crosscutting.error_responses (validation_error, forbidden, not_found)
===============================================================================
"""

from __future__ import annotations

from ....application.usecases.users import UserError, UserErrorCode
from ....crosscutting.error_responses import (
    forbidden,
    internal_error,
    not_found,
    validation_error,
)


def raise_user_error(error: UserError, *, user_id: int | None = None) -> None:
    """Traduce UserError -> HTTP (422 con errores por campo, 403, 404)."""
    if error.code == UserErrorCode.VALIDATION_ERROR:
        raise validation_error(error.message, errors=error.errors or None)
    if error.code == UserErrorCode.FORBIDDEN:
        raise forbidden(error.message)
    if error.code == UserErrorCode.NOT_FOUND:
        raise not_found("User", str(user_id if user_id is not None else "-"))
    raise internal_error(error.message)
