"""
===============================================================================
USE CASE: Delete User
===============================================================================

Class:
    DeleteUserUseCase

Responsibilities:
    - Cargar target (404), validar delete (403, solo admin).
    - Borrar la cuenta y devolver el registro borrado.

Collaborators:
    - UserRepository.find_by_id / delete
    - user_policy.decide
===============================================================================
"""

from __future__ import annotations

from ....crosscutting.logger import logger
from ....domain.repositories import UserRepository
from ....domain.user_policy import Actor, UserAbility, decide
from ._helpers import forbidden_error, not_found_error
from .user_results import UserResult


class DeleteUserUseCase:
    def __init__(self, repository: UserRepository) -> None:
        self._users = repository

    def execute(self, actor: Actor, user_id: int) -> UserResult:
        user = self._users.find_by_id(user_id)
        if user is None:
            return UserResult(error=not_found_error())

        if not decide(actor, UserAbility.DELETE, user):
            return UserResult(error=forbidden_error(actor, UserAbility.DELETE, user_id))

        if not self._users.delete(user.id):
            return UserResult(error=not_found_error())

        logger.info("usuario eliminado", extra={"user_id": user.id})
        return UserResult(user=user)
