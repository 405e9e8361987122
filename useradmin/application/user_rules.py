"""
===============================================================================
TARJETA CRC — application/user_rules.py
===============================================================================

Módulo:
    RuleSets de usuarios (Create / Update / List / Output)

Responsabilidades:
    - Declarar las reglas de cada forma de payload sobre usuarios.
    - Construir la PasswordPolicy desde Settings.

Colaboradores:
    - application.input_shaping: modificadores, FieldRule, RuleSet.
    - crosscutting.config.Settings: política de password y paginación.
    - domain.entities.UserStatus: catálogo cerrado de estados.

Notas:
    - Create: password obligatoria (y confirmada si la política lo pide).
    - Update: password opcional; unicidad excluye al propio usuario.
    - List: filtros opcionales + paginación con defaults.
===============================================================================
"""

from __future__ import annotations

from ..crosscutting.config import Settings
from ..domain.entities import UserStatus
from .input_shaping import (
    OUTPUT_RULES,
    EnumOf,
    FieldRule,
    Max,
    Min,
    Password,
    PasswordPolicy,
    RuleSet,
    Unique,
    confirmed,
    email,
    integer,
    nullable,
    required,
    sometimes,
    string,
)

USERNAME_MAX_LENGTH = 40
EMAIL_MAX_LENGTH = 255
# R: (page - 1) * per_page tiene que entrar en el OFFSET bigint de Postgres.
PAGE_MAX = 10_000_000

__all__ = [
    "OUTPUT_RULES",
    "PAGE_MAX",
    "build_create_rules",
    "build_list_rules",
    "build_update_rules",
    "password_policy_from_settings",
]


def password_policy_from_settings(settings: Settings) -> PasswordPolicy:
    return PasswordPolicy(
        min_length=settings.password_min_length,
        max_length=settings.password_max_length,
        require_confirmation=settings.password_require_confirmation,
        require_mixed_case=settings.password_require_mixed_case,
        require_numbers=settings.password_require_numbers,
        require_symbols=settings.password_require_symbols,
        check_breaches=settings.password_check_breaches,
    )


def build_create_rules(policy: PasswordPolicy | None = None) -> RuleSet:
    policy = policy or PasswordPolicy()
    password_modifiers = (required,)
    if policy.require_confirmation:
        password_modifiers += (confirmed,)
    password_modifiers += (Password(policy),)

    return RuleSet(
        name="create",
        rules=(
            FieldRule(
                "username",
                (
                    required,
                    string,
                    Max(USERNAME_MAX_LENGTH),
                    Unique("users", "username"),
                ),
            ),
            FieldRule(
                "email",
                (required, email, Max(EMAIL_MAX_LENGTH), Unique("users", "email")),
            ),
            FieldRule("password", password_modifiers),
            FieldRule(
                "status",
                (sometimes, required, EnumOf(UserStatus)),
                default=UserStatus.ACTIVE,
            ),
        ),
        hashed_fields=frozenset({"password"}),
    )


def build_update_rules(policy: PasswordPolicy | None = None) -> RuleSet:
    policy = policy or PasswordPolicy()
    return RuleSet(
        name="update",
        rules=(
            FieldRule(
                "username",
                (
                    required,
                    string,
                    Max(USERNAME_MAX_LENGTH),
                    Unique("users", "username", ignore_current=True),
                ),
            ),
            FieldRule(
                "email",
                (
                    required,
                    email,
                    Max(EMAIL_MAX_LENGTH),
                    Unique("users", "email", ignore_current=True),
                ),
            ),
            FieldRule("password", (sometimes, nullable, string, Password(policy))),
            FieldRule("status", (sometimes, required, EnumOf(UserStatus))),
        ),
        hashed_fields=frozenset({"password"}),
    )


def build_list_rules(
    page_size_default: int = 10, page_size_max: int = 100
) -> RuleSet:
    return RuleSet(
        name="list",
        rules=(
            FieldRule(
                "username", (sometimes, required, string, Max(USERNAME_MAX_LENGTH))
            ),
            # R: filtro exacto (case-insensitive) sobre email; no se exige que el
            # email exista: un filtro sin coincidencias devuelve una página vacía.
            FieldRule("email", (sometimes, required, email)),
            FieldRule("status", (sometimes, required, EnumOf(UserStatus))),
            FieldRule(
                "per_page",
                (sometimes, required, integer, Min(1), Max(page_size_max)),
                default=page_size_default,
            ),
            FieldRule(
                "page",
                (sometimes, required, integer, Min(1), Max(PAGE_MAX)),
                default=1,
            ),
        ),
    )
