# useradmin/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logging JSON de la API de usuarios
===============================================================================

Una línea JSON por evento con:
  - timestamp UTC, nivel, logger y mensaje
  - contexto del request (request_id, method, path, actor_id)
  - los `extra` del llamador, con passwords / hashes / tokens enmascarados

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + logger global

Responsabilidades:
  - Serializar LogRecord a JSON compacto
  - Enmascarar claves sensibles y acotar valores grandes
  - Elegir formato (JSON o texto) y nivel según Settings

Colaboradores:
  - useradmin/context.py
  - crosscutting/config.py (log_level, log_json)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# R: atributos estándar de LogRecord; todo lo demás vino por `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("x", logging.INFO, "x", 0, "x", None, None))
) | {"message", "asctime"}

_MASK = "[redacted]"
_MASKED_KEYS = frozenset(
    {
        "password",
        "password_confirmation",
        "password_hash",
        "jwt_secret",
        "secret",
        "token",
        "access_token",
        "authorization",
        "cookie",
    }
)
_MAX_TEXT = 2_000
_MAX_DEPTH = 4


def _scrub(value: Any, key: str = "", depth: int = 0) -> Any:
    if key.lower() in _MASKED_KEYS:
        return _MASK
    if depth >= _MAX_DEPTH:
        return "[depth limit]"
    if isinstance(value, str):
        return value if len(value) <= _MAX_TEXT else value[:_MAX_TEXT] + "..."
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, dict):
        return {str(k): _scrub(v, str(k), depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_scrub(v, key, depth + 1) for v in value]
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(get_context_dict())
        entry.update(
            {
                name: _scrub(value, name)
                for name, value in vars(record).items()
                if name not in _STANDARD_ATTRS
            }
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "trace": "".join(traceback.format_exception(exc_type, exc_value, tb)),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logger(name: str = "useradmin") -> logging.Logger:
    """Idempotente: reimportar el módulo no duplica handlers."""
    from .config import get_settings

    settings = get_settings()
    log = logging.getLogger(name)
    level = (settings.log_level or "INFO").upper()
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if settings.log_json:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
            )
        log.addHandler(handler)
    return log


logger = setup_logger()
