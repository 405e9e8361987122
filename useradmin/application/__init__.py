"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - UserInputShaper: validación + filtrado + defaults de payloads
  - RuleSets de usuarios (create / update / list / output)
  - ensure_dev_admin: seed de admin para desarrollo local

Nota:
  - Los casos de uso se importan desde `usecases/users`.
===============================================================================
"""

from .dev_seed_admin import ensure_dev_admin
from .input_shaping import (
    OUTPUT_RULES,
    FieldRule,
    PasswordPolicy,
    RuleSet,
    ShapeResult,
    UserInputShaper,
    ValidationFailure,
    hash_sensitive_fields,
    shape_output,
)
from .user_rules import (
    build_create_rules,
    build_list_rules,
    build_update_rules,
    password_policy_from_settings,
)

__all__ = [
    "OUTPUT_RULES",
    "FieldRule",
    "PasswordPolicy",
    "RuleSet",
    "ShapeResult",
    "UserInputShaper",
    "ValidationFailure",
    "build_create_rules",
    "build_list_rules",
    "build_update_rules",
    "ensure_dev_admin",
    "hash_sensitive_fields",
    "password_policy_from_settings",
    "shape_output",
]
