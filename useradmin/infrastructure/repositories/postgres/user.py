"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/user.py
============================================================
Class: PostgresUserRepository

Responsibilities:
  - Implementar UserRepository sobre la tabla `users`.
  - Ejecutar SQL parametrizado (nunca interpolar input de usuario).
  - Mapear filas crudas -> UserRecord validando status/role.
  - Traducir violaciones UNIQUE a DuplicateUserError(field).
  - Exponer el resto de fallos vía DatabaseError con logging estructurado.

Collaborators:
  - psycopg_pool.ConnectionPool (pool de conexiones)
  - infrastructure.db.pool.get_pool (pool global por defecto)
  - domain.entities.UserRecord / UserStatus / UserRole
  - crosscutting.exceptions.DatabaseError / DuplicateUserError

Constraints / Notes:
  - Retorna None cuando no existe el recurso (no exception por “not found”).
  - Emails únicos case-insensitive: índice único sobre lower(email).
  - Orden estable en listados: id ASC.
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional

from psycopg import errors as pg_errors
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError, DuplicateUserError
from ....crosscutting.logger import logger
from ....domain.entities import UserRecord, UserRole, UserStatus
from ....domain.repositories import UserFilters, UserPage

# R: Lista explícita de columnas para mantener el contrato estable con migraciones.
_USER_COLUMNS = (
    "id, username, email, password_hash, status, role, created_at, updated_at"
)

# R: columnas que un update puede tocar (whitelist: los nombres se interpolan).
_UPDATABLE_COLUMNS = ("username", "email", "password_hash", "status", "role")

# R: columnas sondeables por exists_by_field, con su expresión de comparación.
_UNIQUE_PREDICATES = {
    "username": "username = %s",
    "email": "lower(email) = lower(%s)",
}


def _row_to_user(row: tuple) -> UserRecord:
    """
    Convierte una fila de `users` a UserRecord.

    Casting estricto: valores fuera de los enums -> DatabaseError (drift de datos).
    """
    try:
        status = UserStatus(row[4])
        role = UserRole(row[5])
    except ValueError as exc:
        raise DatabaseError(
            f"Invalid user status/role in database: {row[4]}/{row[5]}"
        ) from exc

    return UserRecord(
        id=row[0],
        username=row[1],
        email=row[2],
        password_hash=row[3],
        status=status,
        role=role,
        created_at=row[6],
        updated_at=row[7],
    )


def _duplicate_field(exc: pg_errors.UniqueViolation) -> str:
    constraint = getattr(getattr(exc, "diag", None), "constraint_name", None) or ""
    return "username" if "username" in constraint else "email"


def _db_value(value: object) -> object:
    return value.value if isinstance(value, (UserStatus, UserRole)) else value


def _escape_like(term: str) -> str:
    """Literal substring para ILIKE: `\\`, `%` y `_` pierden su rol de comodín."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresUserRepository:
    """
    UserRepository sobre psycopg + psycopg_pool.

    El pool es inyectable (tests); si es None se usa el global.
    """

    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool

    # ============================================================
    # Helpers internos: ejecución + errores consistentes
    # ============================================================
    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _execute(
        self,
        *,
        query: str,
        params: Iterable[object],
        log_msg: str,
        log_extra: dict[str, object],
        fetch: str = "one",
    ):
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                cursor = conn.execute(query, tuple(params))
                if fetch == "one":
                    return cursor.fetchone()
                if fetch == "all":
                    return cursor.fetchall()
                return cursor.rowcount
        except pg_errors.UniqueViolation as exc:
            field = _duplicate_field(exc)
            logger.warning(
                "PostgresUserRepository: unique violation",
                extra={**log_extra, "field": field},
            )
            raise DuplicateUserError(field, original_error=exc) from exc
        except DatabaseError:
            raise
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    def _fetchone(self, **kwargs) -> tuple | None:
        return self._execute(fetch="one", **kwargs)

    def _fetchall(self, **kwargs) -> list[tuple]:
        return self._execute(fetch="all", **kwargs)

    # ============================================================
    # Lecturas
    # ============================================================
    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        row = self._fetchone(
            query=f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            params=(user_id,),
            log_msg="PostgresUserRepository: find_by_id failed",
            log_extra={"user_id": user_id},
        )
        return _row_to_user(row) if row else None

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        row = self._fetchone(
            query=f"SELECT {_USER_COLUMNS} FROM users WHERE lower(email) = lower(%s)",
            params=((email or "").strip(),),
            log_msg="PostgresUserRepository: find_by_email failed",
            log_extra={},
        )
        return _row_to_user(row) if row else None

    def exists_by_field(
        self, field: str, value: object, exclude_id: Optional[int] = None
    ) -> bool:
        predicate = _UNIQUE_PREDICATES.get(field)
        if predicate is None:
            raise ValueError(f"Unsupported uniqueness field: {field}")

        query = f"SELECT 1 FROM users WHERE {predicate}"
        params: list[object] = [value]
        if exclude_id is not None:
            query += " AND id <> %s"
            params.append(exclude_id)

        row = self._fetchone(
            query=query + " LIMIT 1",
            params=params,
            log_msg="PostgresUserRepository: exists_by_field failed",
            log_extra={"field": field, "exclude_id": exclude_id},
        )
        return row is not None

    def list_users(
        self, filters: UserFilters, *, page: int = 1, per_page: int = 10
    ) -> UserPage:
        page = max(1, page)
        per_page = max(1, per_page)

        where: list[str] = []
        params: list[object] = []
        if filters.username:
            where.append("username ILIKE %s ESCAPE '\\'")
            params.append(f"%{_escape_like(filters.username)}%")
        if filters.email:
            where.append("lower(email) = lower(%s)")
            params.append(filters.email)
        if filters.status is not None:
            where.append("status = %s")
            params.append(_db_value(filters.status))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        log_extra = {"page": page, "per_page": per_page}

        total_row = self._fetchone(
            query=f"SELECT count(*) FROM users {where_sql}",
            params=params,
            log_msg="PostgresUserRepository: count users failed",
            log_extra=log_extra,
        )
        rows = self._fetchall(
            query=f"""
                SELECT {_USER_COLUMNS}
                FROM users
                {where_sql}
                ORDER BY id ASC
                LIMIT %s OFFSET %s
            """,
            params=[*params, per_page, (page - 1) * per_page],
            log_msg="PostgresUserRepository: list_users failed",
            log_extra=log_extra,
        )
        return UserPage(
            items=[_row_to_user(r) for r in rows],
            total=int(total_row[0]) if total_row else 0,
            page=page,
            per_page=per_page,
        )

    # ============================================================
    # Escrituras
    # ============================================================
    def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        status: UserStatus = UserStatus.ACTIVE,
        role: UserRole = UserRole.MEMBER,
    ) -> UserRecord:
        row = self._fetchone(
            query=f"""
                INSERT INTO users (username, email, password_hash, status, role)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {_USER_COLUMNS}
            """,
            params=(username, email, password_hash, _db_value(status), _db_value(role)),
            log_msg="PostgresUserRepository: create failed",
            log_extra={"status": _db_value(status), "role": _db_value(role)},
        )
        if not row:
            raise DatabaseError(
                "PostgresUserRepository: create failed (no row returned)"
            )
        return _row_to_user(row)

    def update(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        unknown = set(changes) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported user columns: {sorted(unknown)}")

        if not changes:
            return self.find_by_id(user_id)

        # R: orden fijo de columnas; nombres vienen de la whitelist, no del input.
        columns = [c for c in _UPDATABLE_COLUMNS if c in changes]
        assignments = ", ".join(f"{c} = %s" for c in columns)
        params = [_db_value(changes[c]) for c in columns]
        params.append(user_id)

        row = self._fetchone(
            query=f"""
                UPDATE users
                SET {assignments}, updated_at = now()
                WHERE id = %s
                RETURNING {_USER_COLUMNS}
            """,
            params=params,
            log_msg="PostgresUserRepository: update failed",
            log_extra={"user_id": user_id, "columns": columns},
        )
        return _row_to_user(row) if row else None

    def delete(self, user_id: int) -> bool:
        deleted = self._execute(
            query="DELETE FROM users WHERE id = %s",
            params=(user_id,),
            log_msg="PostgresUserRepository: delete failed",
            log_extra={"user_id": user_id},
            fetch="rowcount",
        )
        return bool(deleted)
