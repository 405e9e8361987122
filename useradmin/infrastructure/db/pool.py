"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  ConnectionPool de psycopg compartido por el proceso

Responsabilidades:
  - Abrirlo en el startup de la app y cerrarlo en el shutdown.
  - Entregarlo a PostgresUserRepository.
  - Fijar statement_timeout en cada conexión nueva.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - crosscutting.config (db_statement_timeout_ms)
  - api.main (lifespan)

Errores:
  - PoolAlreadyInitializedError: segundo init_pool() sin close_pool().
  - PoolNotInitializedError: get_pool() antes del startup.
===============================================================================
"""

from __future__ import annotations

import threading

from psycopg_pool import ConnectionPool

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError

_lock = threading.Lock()
_state: dict[str, ConnectionPool] = {}


def _configure_connection(conn) -> None:
    from ...crosscutting.config import get_settings

    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms <= 0:
        return
    conn.execute(f"SET statement_timeout = {timeout_ms}")
    # R: psycopg abre transacción implícita; el pool exige conexiones en idle.
    conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    with _lock:
        if "pool" in _state:
            raise PoolAlreadyInitializedError(
                "init_pool() llamado dos veces sin close_pool()."
            )
        logger.info(
            "Abriendo pool Postgres",
            extra={"min_size": min_size, "max_size": max_size},
        )
        pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_configure_connection,
            open=True,
        )
        _state["pool"] = pool
        return pool


def get_pool() -> ConnectionPool:
    try:
        return _state["pool"]
    except KeyError:
        raise PoolNotInitializedError(
            "No hay pool abierto (init_pool() no se ejecutó)."
        ) from None


def close_pool() -> None:
    with _lock:
        pool = _state.pop("pool", None)
    if pool is not None:
        logger.info("Cerrando pool Postgres")
        pool.close()
