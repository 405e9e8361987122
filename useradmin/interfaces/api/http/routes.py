"""
===============================================================================
TARJETA CRC — routes.py (Router de /api)
===============================================================================

Responsabilidades:
  - Unir los routers de auth y users bajo un único APIRouter.
  - Documentar en OpenAPI las respuestas problem+json compartidas.

Colaboradores:
  - routers/auth.py, routers/users.py
  - api/main.py (lo monta con prefix="/api")
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers import auth, users


def build_router() -> APIRouter:
    api = APIRouter(responses=OPENAPI_ERROR_RESPONSES)
    for feature in (auth, users):
        api.include_router(feature.router)
    return api


router = build_router()
