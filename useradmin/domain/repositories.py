"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define the persistence contract for user accounts (port).
- Keep application/domain independent from infrastructure (PostgreSQL, in-memory).
- Enable dependency inversion and straightforward unit testing.

Collaborators
- domain.entities: UserRecord, UserStatus, UserRole
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Implementations MUST match method signatures exactly.

Notes
- We use typing.Protocol for structural subtyping ("duck typing").
- Writes return the stored record so callers never re-read.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from .entities import UserRecord, UserRole, UserStatus


@dataclass(frozen=True)
class UserFilters:
    """
    R: Filters for listing users.

    - username: case-insensitive substring match
    - email: exact match (case-insensitive)
    - status: exact match
    """

    username: Optional[str] = None
    email: Optional[str] = None
    status: Optional[UserStatus] = None


@dataclass(frozen=True)
class UserPage:
    """R: One page of users plus the total count for the filters."""

    items: List[UserRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10

    @property
    def last_page(self) -> int:
        if self.total <= 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page


class UserRepository(Protocol):
    """
    R: Interface for user account persistence.

    Implementations must provide:
      - Lookups by id and email
      - Uniqueness checks (optionally excluding one id)
      - Create/update/delete returning the stored record
      - Filtered, paginated listing
    """

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        """R: Fetch user by id (None if absent)."""
        ...

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """R: Fetch user by email, case-insensitive (None if absent)."""
        ...

    def exists_by_field(
        self, field: str, value: object, exclude_id: Optional[int] = None
    ) -> bool:
        """
        R: True if another user already holds `value` in `field`.

        `exclude_id` removes that user from the check (update-own-record case).
        Only `username` and `email` are valid fields.
        """
        ...

    def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        status: UserStatus = UserStatus.ACTIVE,
        role: UserRole = UserRole.MEMBER,
    ) -> UserRecord:
        """R: Insert a user. Raises DuplicateUserError on unique violations."""
        ...

    def update(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        """
        R: Apply `changes` (column -> value) and bump updated_at.

        Returns None if the user does not exist.
        Raises DuplicateUserError on unique violations.
        """
        ...

    def delete(self, user_id: int) -> bool:
        """R: Hard delete. Returns True if a row was removed."""
        ...

    def list_users(
        self, filters: UserFilters, *, page: int = 1, per_page: int = 10
    ) -> UserPage:
        """R: Filtered page ordered by id ascending."""
        ...
