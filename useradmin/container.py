"""
===============================================================================
TARJETA CRC — useradmin/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorio, hasher, breach checker, shaper).
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache).
  - Centralizar decisiones runtime basadas en Settings.

Colaboradores:
  - useradmin.crosscutting.config.get_settings
  - useradmin.domain (puertos)
  - useradmin.infrastructure (implementaciones)
  - useradmin.application (shaper, rule sets, casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
  - En tests se llama `reset_container()` para soltar singletons cacheados.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.input_shaping import PasswordPolicy, RuleSet, UserInputShaper
from .application.usecases.users import (
    CreateUserUseCase,
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    UpdateUserUseCase,
)
from .application.user_rules import (
    build_create_rules,
    build_list_rules,
    build_update_rules,
    password_policy_from_settings,
)
from .crosscutting.config import get_settings
from .domain.repositories import UserRepository
from .domain.services import BreachChecker, PasswordHasher
from .identity.auth_users import Argon2PasswordHasher
from .infrastructure.repositories.in_memory import InMemoryUserRepository
from .infrastructure.repositories.postgres import PostgresUserRepository
from .infrastructure.services import NullBreachChecker, PwnedPasswordsChecker

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => in-memory adapters."""
    return get_settings().is_test()


# =============================================================================
# Adapters (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_user_repository() -> UserRepository:
    """Repositorio de usuarios (in-memory en test; Postgres en runtime)."""
    if _is_test_env():
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return Argon2PasswordHasher()


@lru_cache(maxsize=1)
def get_breach_checker() -> BreachChecker:
    """Pwned Passwords si está habilitado; si no, un checker nulo."""
    settings = get_settings()
    if not settings.password_check_breaches:
        return NullBreachChecker()
    return PwnedPasswordsChecker(
        settings.pwned_passwords_url,
        timeout_seconds=settings.pwned_passwords_timeout_seconds,
    )


# =============================================================================
# Shaping (rule sets + shaper)
# =============================================================================


@lru_cache(maxsize=1)
def get_password_policy() -> PasswordPolicy:
    return password_policy_from_settings(get_settings())


@lru_cache(maxsize=1)
def get_create_rules() -> RuleSet:
    return build_create_rules(get_password_policy())


@lru_cache(maxsize=1)
def get_update_rules() -> RuleSet:
    return build_update_rules(get_password_policy())


@lru_cache(maxsize=1)
def get_list_rules() -> RuleSet:
    settings = get_settings()
    return build_list_rules(
        settings.users_page_size_default, settings.users_page_size_max
    )


def get_input_shaper() -> UserInputShaper:
    return UserInputShaper(get_user_repository(), get_breach_checker())


# =============================================================================
# Casos de uso
# =============================================================================


def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(get_user_repository(), get_input_shaper(), get_list_rules())


def get_get_user_use_case() -> GetUserUseCase:
    return GetUserUseCase(get_user_repository())


def get_create_user_use_case() -> CreateUserUseCase:
    return CreateUserUseCase(
        get_user_repository(),
        get_input_shaper(),
        get_create_rules(),
        get_password_hasher(),
    )


def get_update_user_use_case() -> UpdateUserUseCase:
    return UpdateUserUseCase(
        get_user_repository(),
        get_input_shaper(),
        get_update_rules(),
        get_password_hasher(),
    )


def get_delete_user_use_case() -> DeleteUserUseCase:
    return DeleteUserUseCase(get_user_repository())


def reset_container() -> None:
    """Suelta todos los singletons (tests / cambio de Settings)."""
    for factory in (
        get_user_repository,
        get_password_hasher,
        get_breach_checker,
        get_password_policy,
        get_create_rules,
        get_update_rules,
        get_list_rules,
    ):
        factory.cache_clear()
