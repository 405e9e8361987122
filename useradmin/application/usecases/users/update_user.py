"""
===============================================================================
USE CASE: Update User
===============================================================================

Business Goal:
    Editar una cuenta: el propio usuario puede cambiar sus datos; solo un
    admin puede editar a otros o cambiar un status.

Why (Context / Intención):
    - La autorización corre ANTES del shaping: un actor sin permiso no
      obtiene información de validación sobre el target.
    - La unicidad de username/email excluye al propio target.
    - Un cambio de status requiere un segundo chequeo (updateStatus) que un
      usuario normal nunca pasa, ni sobre sí mismo.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    UpdateUserUseCase

Responsibilities:
    - Cargar target (404), validar update (403).
    - Shapear con exclude_id = target.id (422).
    - Validar updateStatus si el payload cambia el status (403).
    - Hashear la password si vino y persistir.

Collaborators:
    - UserRepository.find_by_id / update
    - user_policy.decide / status_change_requested
    - UserInputShaper / hash_sensitive_fields
    - PasswordHasher
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping

from ....crosscutting.exceptions import DuplicateUserError
from ....crosscutting.logger import logger
from ....domain.repositories import UserRepository
from ....domain.services import PasswordHasher
from ....domain.user_policy import (
    Actor,
    UserAbility,
    decide,
    status_change_requested,
)
from ...input_shaping import RuleSet, UserInputShaper, hash_sensitive_fields
from ._helpers import (
    duplicate_error,
    forbidden_error,
    not_found_error,
    validation_error,
)
from .user_results import UserResult


class UpdateUserUseCase:
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

    def execute(
        self, actor: Actor, user_id: int, raw: Mapping[str, Any] | None
    ) -> UserResult:
        # 1) Target
        target = self._users.find_by_id(user_id)
        if target is None:
            return UserResult(error=not_found_error())

        # 2) Autorización (antes de validar)
        if not decide(actor, UserAbility.UPDATE, target):
            return UserResult(error=forbidden_error(actor, UserAbility.UPDATE, user_id))

        # 3) Shaping (unicidad excluye al propio target)
        shaped = self._shaper.shape(raw or {}, self._rules, exclude_id=target.id)
        if not shaped.ok:
            return UserResult(error=validation_error(shaped.failure))

        # 4) Cambio de status: chequeo adicional
        if status_change_requested(shaped.payload, target) and not decide(
            actor, UserAbility.UPDATE_STATUS, target
        ):
            return UserResult(
                error=forbidden_error(actor, UserAbility.UPDATE_STATUS, user_id)
            )

        # 5) Persistencia
        data = hash_sensitive_fields(shaped.payload, self._rules, self._hasher)
        changes = self._to_columns(data)

        try:
            updated = self._users.update(target.id, changes)
        except DuplicateUserError as exc:
            return UserResult(error=duplicate_error(exc.field))

        if updated is None:
            # R: pudo desaparecer entre read y write.
            return UserResult(error=not_found_error())

        logger.info(
            "usuario actualizado",
            extra={"user_id": updated.id, "fields": sorted(changes)},
        )
        return UserResult(user=updated)

    @staticmethod
    def _to_columns(data: Mapping[str, Any]) -> dict[str, Any]:
        """Mapea campos shapeados a columnas (password -> password_hash)."""
        changes = dict(data)
        if "password" in changes:
            changes["password_hash"] = changes.pop("password")
        return changes
