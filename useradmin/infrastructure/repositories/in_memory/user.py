"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/user.py
============================================================
Class: InMemoryUserRepository

Responsibilities:
  - Almacenar usuarios en memoria (tests / app_env=test).
  - Replicar las constraints UNIQUE de Postgres (username, lower(email)).
  - Listado filtrado y paginado con ordering alineado a Postgres (id ASC).

Collaborators:
  - domain.entities.UserRecord / UserStatus / UserRole
  - domain.repositories.UserRepository (contrato a implementar)
  - crosscutting.exceptions.DuplicateUserError

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Ids autoincrementales (1, 2, 3...) como la identity column.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from ....crosscutting.exceptions import DuplicateUserError
from ....domain.entities import UserRecord, UserRole, UserStatus
from ....domain.repositories import UserFilters, UserPage, UserRepository

_UNIQUE_FIELDS = ("username", "email")
_MUTABLE_FIELDS = frozenset({"username", "email", "password_hash", "status", "role"})


class InMemoryUserRepository(UserRepository):
    """
    Repositorio in-memory, thread-safe, para usuarios.

    Modelo mental:
    - _users es la "tabla" en memoria (id -> UserRecord).
    - _next_id emula la identity column.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[int, UserRecord] = {}
        self._next_id = 1

    # =========================================================
    # Helpers internos
    # =========================================================
    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _key(field: str, value: object) -> object:
        """R: email se compara case-insensitive (índice lower(email))."""
        if field == "email" and isinstance(value, str):
            return value.lower()
        return value

    def _exists_locked(
        self, field: str, value: object, exclude_id: Optional[int]
    ) -> bool:
        if field not in _UNIQUE_FIELDS:
            raise ValueError(f"Unsupported uniqueness field: {field}")
        needle = self._key(field, value)
        return any(
            self._key(field, getattr(u, field)) == needle
            for u in self._users.values()
            if u.id != exclude_id
        )

    def _assert_unique_locked(self, values: dict, exclude_id: Optional[int]) -> None:
        for field in _UNIQUE_FIELDS:
            if field in values and self._exists_locked(
                field, values[field], exclude_id
            ):
                raise DuplicateUserError(field)

    # =========================================================
    # Lecturas
    # =========================================================
    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(user_id)

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        needle = (email or "").strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == needle:
                    return user
        return None

    def exists_by_field(
        self, field: str, value: object, exclude_id: Optional[int] = None
    ) -> bool:
        with self._lock:
            return self._exists_locked(field, value, exclude_id)

    def list_users(
        self, filters: UserFilters, *, page: int = 1, per_page: int = 10
    ) -> UserPage:
        page = max(1, page)
        per_page = max(1, per_page)
        with self._lock:
            items = sorted(self._users.values(), key=lambda u: u.id)

        if filters.username:
            needle = filters.username.lower()
            items = [u for u in items if needle in u.username.lower()]
        if filters.email:
            needle = filters.email.lower()
            items = [u for u in items if u.email.lower() == needle]
        if filters.status is not None:
            items = [u for u in items if u.status == filters.status]

        offset = (page - 1) * per_page
        return UserPage(
            items=list(items[offset : offset + per_page]),
            total=len(items),
            page=page,
            per_page=per_page,
        )

    # =========================================================
    # Escrituras
    # =========================================================
    def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        status: UserStatus = UserStatus.ACTIVE,
        role: UserRole = UserRole.MEMBER,
    ) -> UserRecord:
        with self._lock:
            self._assert_unique_locked(
                {"username": username, "email": email}, exclude_id=None
            )
            now = self._now()
            user = UserRecord(
                id=self._next_id,
                username=username,
                email=email,
                password_hash=password_hash,
                status=UserStatus(status),
                role=UserRole(role),
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            self._next_id += 1
            return user

    def update(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported user columns: {sorted(unknown)}")

        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            self._assert_unique_locked(changes, exclude_id=user_id)
            updated = replace(current, **changes, updated_at=self._now())
            self._users[user_id] = updated
            return updated

    def delete(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def all(self) -> List[UserRecord]:
        """R: Snapshot ordenado por id (útil en tests)."""
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.id)
