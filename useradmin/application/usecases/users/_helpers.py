"""
Helpers compartidos por los casos de uso de usuarios.

- Construcción consistente de errores (403/404/422).
- Log + métrica de denegaciones de policy.
"""

from __future__ import annotations

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_policy_denied
from ....domain.user_policy import Actor, UserAbility
from ...input_shaping import ValidationFailure
from .user_results import UserError, UserErrorCode

VALIDATION_MESSAGE = "The given data was invalid."
FORBIDDEN_MESSAGE = "This action is unauthorized."
NOT_FOUND_MESSAGE = "User not found."


def forbidden_error(
    actor: Actor, ability: UserAbility, target_id: int | None
) -> UserError:
    logger.warning(
        "policy denegó operación",
        extra={
            "ability": ability.value,
            "actor_id": actor.id,
            "target_id": target_id,
        },
    )
    record_policy_denied(ability.value)
    return UserError(code=UserErrorCode.FORBIDDEN, message=FORBIDDEN_MESSAGE)


def not_found_error() -> UserError:
    return UserError(code=UserErrorCode.NOT_FOUND, message=NOT_FOUND_MESSAGE)


def validation_error(failure: ValidationFailure) -> UserError:
    return UserError(
        code=UserErrorCode.VALIDATION_ERROR,
        message=VALIDATION_MESSAGE,
        errors=failure.errors,
    )


def duplicate_error(field: str) -> UserError:
    """Mismo 422 que una falla de unicidad detectada al validar."""
    return UserError(
        code=UserErrorCode.VALIDATION_ERROR,
        message=VALIDATION_MESSAGE,
        errors={field: [f"The {field} has already been taken."]},
    )
