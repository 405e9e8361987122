"""
===============================================================================
USE CASE: Create User
===============================================================================

Business Goal:
    Dar de alta una cuenta nueva (solo admin), con password fuerte y
    username/email únicos.

Why (Context / Intención):
    - El status es opcional: por defecto la cuenta nace `active`.
    - El hash de la password se calcula recién antes de persistir, así el
      shaping sigue siendo idempotente.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    CreateUserUseCase

Responsibilities:
    - Validar autorización (create).
    - Shapear el payload con el RuleSet de alta.
    - Hashear la password y persistir.
    - Traducir duplicados detectados por la DB al mismo 422 de validación.

Collaborators:
    - UserRepository.create
    - UserInputShaper / hash_sensitive_fields
    - PasswordHasher
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping

from ....crosscutting.exceptions import DuplicateUserError
from ....crosscutting.logger import logger
from ....domain.entities import UserStatus
from ....domain.repositories import UserRepository
from ....domain.services import PasswordHasher
from ....domain.user_policy import Actor, UserAbility, decide
from ...input_shaping import RuleSet, UserInputShaper, hash_sensitive_fields
from ._helpers import duplicate_error, forbidden_error, validation_error
from .user_results import UserResult


class CreateUserUseCase:
    def __init__(
        self,
        repository: UserRepository,
        shaper: UserInputShaper,
        rules: RuleSet,
        hasher: PasswordHasher,
    ) -> None:
        self._users = repository
        self._shaper = shaper
        self._rules = rules
        self._hasher = hasher

    def execute(self, actor: Actor, raw: Mapping[str, Any] | None) -> UserResult:
        if not decide(actor, UserAbility.CREATE):
            return UserResult(error=forbidden_error(actor, UserAbility.CREATE, None))

        shaped = self._shaper.shape(raw or {}, self._rules)
        if not shaped.ok:
            return UserResult(error=validation_error(shaped.failure))

        data = hash_sensitive_fields(shaped.payload, self._rules, self._hasher)

        try:
            user = self._users.create(
                username=data["username"],
                email=data["email"],
                password_hash=data["password"],
                status=data.get("status", UserStatus.ACTIVE),
            )
        except DuplicateUserError as exc:
            return UserResult(error=duplicate_error(exc.field))

        logger.info(
            "usuario creado",
            extra={"user_id": user.id, "status": user.status.value},
        )
        return UserResult(user=user)
