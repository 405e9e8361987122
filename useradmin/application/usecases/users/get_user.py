"""
===============================================================================
USE CASE: Get User
===============================================================================

Class:
    GetUserUseCase

Responsibilities:
    - Cargar el usuario target (404 si no existe).
    - Validar autorización (view: propio usuario o admin).

Collaborators:
    - UserRepository.find_by_id
    - user_policy.decide
===============================================================================
"""

from __future__ import annotations

from ....domain.repositories import UserRepository
from ....domain.user_policy import Actor, UserAbility, decide
from ._helpers import forbidden_error, not_found_error
from .user_results import UserResult


class GetUserUseCase:
    def __init__(self, repository: UserRepository) -> None:
        self._users = repository

    def execute(self, actor: Actor, user_id: int) -> UserResult:
        user = self._users.find_by_id(user_id)
        if user is None:
            return UserResult(error=not_found_error())

        if not decide(actor, UserAbility.VIEW, user):
            return UserResult(error=forbidden_error(actor, UserAbility.VIEW, user_id))

        return UserResult(user=user)
