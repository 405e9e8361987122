"""Dominio de usuarios: entidades, contratos de repositorio y servicios, y UserPolicy.

Sin dependencias de FastAPI, psycopg ni settings.
"""

from .entities import UserRecord, UserRole, UserStatus
from .repositories import UserFilters, UserPage, UserRepository
from .services import BreachChecker, PasswordHasher
from .user_policy import Actor, UserAbility, decide, status_change_requested

__all__ = [
    "Actor",
    "BreachChecker",
    "PasswordHasher",
    "UserAbility",
    "UserFilters",
    "UserPage",
    "UserRecord",
    "UserRepository",
    "UserRole",
    "UserStatus",
    "decide",
    "status_change_requested",
]
