# useradmin/crosscutting/middleware.py
"""
===============================================================================
MÓDULO: Middlewares HTTP de la API de usuarios
===============================================================================

RequestContextMiddleware
    Correlación por request: X-Request-Id entrante (o uno nuevo), contextvars
    para el logger, una línea de log por request y métricas Prometheus.

BodyLimitMiddleware
    Corta bodies que superan `max_body_bytes` con un 413 problem+json, tanto
    si el cliente declara Content-Length como si manda el body por chunks.

Colaboradores:
  - useradmin/context.py (set_request_context / clear_context)
  - crosscutting/metrics.py (record_request_metrics)
  - crosscutting/error_responses.py (build_problem, PROBLEM_JSON_MEDIA_TYPE)
===============================================================================
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Awaitable, Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .error_responses import PROBLEM_JSON_MEDIA_TYPE, ErrorCode, build_problem
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LENGTH = 128

# R: rutas de infraestructura; cuentan en métricas pero no generan log.
_UNLOGGED_PATHS = frozenset({"/healthz", "/metrics"})


def resolve_request_id(incoming: str | None) -> str:
    """Usa el id del cliente si es razonable; si no, genera un uuid4."""
    candidate = (incoming or "").strip()
    if candidate and len(candidate) <= _MAX_REQUEST_ID_LENGTH:
        return candidate
    return str(uuid.uuid4())


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Contexto + log + métricas por request; siempre limpia el contexto."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request abortado por excepción",
                extra={"duration_ms": _elapsed_ms(started)},
            )
            raise
        else:
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            self._observe(request, status_code, started)
            clear_context()

    @staticmethod
    def _observe(request: Request, status_code: int, started: float) -> None:
        record_request_metrics(
            endpoint=request.url.path,
            method=request.method,
            status_code=status_code,
            latency_seconds=time.perf_counter() - started,
        )
        if request.url.path in _UNLOGGED_PATHS:
            return
        logger.info(
            "request atendido",
            extra={"status_code": status_code, "duration_ms": _elapsed_ms(started)},
        )


def _header(raw_headers: Iterable[tuple[bytes, bytes]], name: bytes) -> str | None:
    for key, value in raw_headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


class BodyLimitMiddleware:
    """Middleware ASGI puro: el límite se aplica antes de que FastAPI lea el body."""

    def __init__(self, app, max_bytes: int | None = None):
        if max_bytes is None:
            from .config import get_settings

            max_bytes = get_settings().max_body_bytes
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        raw_headers = scope.get("headers") or []
        request_id = resolve_request_id(_header(raw_headers, b"x-request-id"))
        path = scope.get("path", "")

        declared = _header(raw_headers, b"content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(
                "body rechazado por Content-Length",
                extra={"declared_bytes": int(declared), "max_bytes": self.max_bytes},
            )
            return await self._reject(send, path, request_id)

        consumed = 0
        exceeded = False
        response_started = False

        async def counting_receive():
            nonlocal consumed, exceeded
            if exceeded:
                return {"type": "http.disconnect"}
            message = await receive()
            if message["type"] == "http.request":
                consumed += len(message.get("body") or b"")
                if consumed > self.max_bytes:
                    # R: para el app el cliente se desconectó; no lee más body.
                    exceeded = True
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message):
            nonlocal response_started
            if exceeded and not response_started:
                # R: lo que responda el app con el body cortado lo reemplaza el 413.
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except Exception:
            if not exceeded or response_started:
                raise

        if exceeded and not response_started:
            logger.warning(
                "body rechazado en streaming",
                extra={"received_bytes": consumed, "max_bytes": self.max_bytes},
            )
            await self._reject(send, path, request_id)

    async def _reject(self, send, path: str, request_id: str) -> None:
        problem = build_problem(
            status=413,
            detail=f"El body supera el máximo de {self.max_bytes} bytes.",
            code=ErrorCode.PAYLOAD_TOO_LARGE,
            instance=path,
            request_id=request_id,
        )
        body = json.dumps(
            problem.model_dump(mode="json", exclude_none=True), ensure_ascii=False
        ).encode("utf-8")

        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    (b"content-type", PROBLEM_JSON_MEDIA_TYPE.encode()),
                    (b"content-length", str(len(body)).encode()),
                    (REQUEST_ID_HEADER.lower().encode(), request_id.encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
