# useradmin/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Problem Details (RFC 7807) para la API de usuarios
===============================================================================

Todo error HTTP sale con el mismo cuerpo `application/problem+json`:
  - `code` estable para que el cliente ramifique sin parsear textos.
  - `errors` {campo: [mensajes]} en los 422.
  - `request_id` para cruzar la respuesta con los logs.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ErrorCode / ErrorDetail / AppHTTPException

Responsabilidades:
  - Catálogo cerrado de códigos de error
  - build_problem(): único lugar donde se arma el payload
  - Factories para los errores que lanzan routers y dependencias
  - Handler de AppHTTPException

Colaboradores:
  - crosscutting/middleware.py (413 sin pasar por FastAPI)
  - api/exception_handlers.py (errores tipados y de framework)
  - interfaces/api/http/error_mapping.py (UserError -> HTTP)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

FieldErrors = dict[str, list[str]]

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DATABASE_ERROR = "DATABASE_ERROR"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def type_uri(self) -> str:
        return f"about:blank/{self.value.lower()}"


class ErrorDetail(BaseModel):
    """Cuerpo RFC 7807 con las extensiones code / errors / request_id."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: FieldErrors | None = None
    request_id: str | None = None


def build_problem(
    *,
    status: int,
    code: ErrorCode,
    detail: str,
    instance: str | None = None,
    errors: FieldErrors | None = None,
    request_id: str | None = None,
) -> ErrorDetail:
    return ErrorDetail(
        type=code.type_uri,
        title=code.title,
        status=status,
        detail=detail,
        code=code,
        instance=instance,
        errors=errors or None,
        request_id=request_id,
    )


def _documented(description: str) -> dict[str, Any]:
    return {
        "description": description,
        "model": ErrorDetail,
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {
                "schema": {"$ref": "#/components/schemas/ErrorDetail"}
            }
        },
    }


# R: respuestas de error comunes a todos los endpoints de /api (OpenAPI).
OPENAPI_ERROR_RESPONSES = {
    401: _documented("Missing or invalid credentials"),
    403: _documented("Action not allowed for the current user"),
    404: _documented("User not found"),
    422: _documented("Invalid input, errors grouped by field"),
    503: _documented("Password breach check or database unavailable"),
}


class AppHTTPException(HTTPException):
    """HTTPException que además lleva ErrorCode y errores por campo."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: FieldErrors | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors


def validation_error(
    detail: str = "The given data was invalid.", errors: FieldErrors | None = None
) -> AppHTTPException:
    return AppHTTPException(422, ErrorCode.VALIDATION_ERROR, detail, errors)


def unauthorized(detail: str = "Autenticación requerida") -> AppHTTPException:
    return AppHTTPException(401, ErrorCode.UNAUTHORIZED, detail)


def forbidden(detail: str = "Acceso denegado") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def not_found(resource: str, identifier: str) -> AppHTTPException:
    return AppHTTPException(
        404, ErrorCode.NOT_FOUND, f"{resource} '{identifier}' no encontrado"
    )


def internal_error(detail: str = "Ocurrió un error inesperado") -> AppHTTPException:
    return AppHTTPException(500, ErrorCode.INTERNAL_ERROR, detail)


def request_id_from(request: Request) -> str | None:
    state = getattr(request, "state", None)
    return getattr(state, "request_id", None)


def problem_response(
    request: Request,
    *,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: FieldErrors | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    problem = build_problem(
        status=status_code,
        code=code,
        detail=detail,
        instance=str(request.url),
        errors=errors,
        request_id=request_id_from(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    # R: los headers (p.ej. WWW-Authenticate) se respetan.
    return problem_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        detail=str(exc.detail),
        errors=exc.errors,
        headers=exc.headers,
    )
