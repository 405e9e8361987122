"""
===============================================================================
TARJETA CRC — useradmin/api/exception_handlers.py
===============================================================================

Responsabilidades:
  - Convertir a problem+json todo lo que no sea una respuesta normal:
    validación de FastAPI, HTTPException de Starlette, errores de
    infraestructura y excepciones inesperadas.
  - Dar a los 422 de FastAPI el mismo shape {campo: [mensajes]} que el shaper.
  - Loguear errores de infraestructura con su error_id.

Tabla de errores internos:
  DuplicateUserError -> 422 (mismo mensaje que la regla Unique)
  DatabaseError      -> 503 DATABASE_ERROR
  BreachCheckError   -> 503 SERVICE_UNAVAILABLE
  UserAdminError     -> 500 INTERNAL_ERROR
  Exception          -> 500, detalle oculto en producción

Colaboradores:
  - crosscutting.error_responses
  - crosscutting.exceptions
===============================================================================
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    FieldErrors,
    app_exception_handler,
    problem_response,
    request_id_from,
)
from ..crosscutting.exceptions import (
    BreachCheckError,
    DatabaseError,
    DuplicateUserError,
    UserAdminError,
)
from ..crosscutting.logger import logger

INVALID_DATA = "The given data was invalid."

_REQUEST_PARTS = frozenset({"body", "query", "path", "header", "cookie"})

_CODE_BY_STATUS = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    413: ErrorCode.PAYLOAD_TOO_LARGE,
    422: ErrorCode.VALIDATION_ERROR,
}

# R: orden de subclase a base; el primer match gana.
_SERVICE_ERRORS: tuple[tuple[type[UserAdminError], int, ErrorCode], ...] = (
    (DatabaseError, 503, ErrorCode.DATABASE_ERROR),
    (BreachCheckError, 503, ErrorCode.SERVICE_UNAVAILABLE),
    (UserAdminError, 500, ErrorCode.INTERNAL_ERROR),
)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p is not None]
    named = [p for p in parts if p not in _REQUEST_PARTS]
    return ".".join(named or parts[:1] or ["body"])


def _field_errors(exc: RequestValidationError) -> FieldErrors:
    errors: FieldErrors = {}
    for err in exc.errors():
        errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(
            str(err.get("msg", "Invalid value."))
        )
    return errors


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return problem_response(
        request,
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail=INVALID_DATA,
        errors=_field_errors(exc),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc, AppHTTPException):
        return await app_exception_handler(request, exc)
    return problem_response(
        request,
        status_code=exc.status_code,
        code=_CODE_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        detail=str(exc.detail),
        headers=exc.headers,
    )


async def duplicate_user_handler(
    request: Request, exc: DuplicateUserError
) -> JSONResponse:
    # R: la constraint UNIQUE ganó la carrera contra la regla Unique del shaper.
    return problem_response(
        request,
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail=INVALID_DATA,
        errors={exc.field: [f"The {exc.field} has already been taken."]},
    )


async def service_error_handler(
    request: Request, exc: UserAdminError
) -> JSONResponse:
    status_code, code = next(
        (status, code)
        for kind, status, code in _SERVICE_ERRORS
        if isinstance(exc, kind)
    )
    logger.error(
        "Error de infraestructura",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error_type": type(exc).__name__,
        },
    )
    return problem_response(
        request, status_code=status_code, code=code, detail=exc.message
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Excepción sin handler",
        exc_info=exc,
        extra={"request_id": request_id_from(request)},
    )
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return problem_response(
        request, status_code=500, code=ErrorCode.INTERNAL_ERROR, detail=detail
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(DuplicateUserError, duplicate_user_handler)
    for kind, _status, _code in _SERVICE_ERRORS:
        app.add_exception_handler(kind, service_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
