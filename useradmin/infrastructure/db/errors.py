"""Errores del ciclo de vida del pool; heredan DatabaseError (la API responde 503)."""

from ...crosscutting.exceptions import DatabaseError


class DatabasePoolError(DatabaseError):
    pass


class PoolAlreadyInitializedError(DatabasePoolError):
    pass


class PoolNotInitializedError(DatabasePoolError):
    pass
