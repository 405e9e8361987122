"""
===============================================================================
TARJETA CRC — useradmin/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar request_id, método, path y actor del request en curso.
  - Exponerlos al logger sin tener que pasarlos como argumentos.

Colaboradores:
  - crosscutting.middleware: abre y cierra el contexto de cada request.
  - identity.auth_users: registra el actor autenticado.
  - crosscutting.logger: lee get_context_dict() en cada línea.

Restricciones:
  - ContextVars (seguro con asyncio y threadpool de FastAPI).
  - "" significa ausente; get_context_dict() omite esas claves.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

_FIELDS: dict[str, ContextVar[str]] = {
    name: ContextVar(f"useradmin_{name}", default="")
    for name in ("request_id", "method", "path", "actor_id")
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _FIELDS["request_id"].set(request_id or "")
    _FIELDS["method"].set(method or "")
    _FIELDS["path"].set(path or "")


def set_actor_context(actor_id: int | str | None) -> None:
    _FIELDS["actor_id"].set("" if actor_id is None else str(actor_id))


def get_context_dict() -> dict[str, str]:
    snapshot = {name: var.get() for name, var in _FIELDS.items()}
    return {name: value for name, value in snapshot.items() if value}


def clear_context() -> None:
    # R: sin esto un worker reutilizado arrastra el request_id anterior.
    for var in _FIELDS.values():
        var.set("")
