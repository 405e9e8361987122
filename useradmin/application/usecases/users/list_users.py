"""
===============================================================================
USE CASE: List Users (filtros + paginación)
===============================================================================

Business Goal:
    Listar cuentas para administración, filtrando por username/email/status.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ListUsersUseCase

Responsibilities:
    - Validar autorización (viewAny: solo admin).
    - Shapear la query cruda con el RuleSet de listado (defaults de página).
    - Consultar la página al repositorio.

Collaborators:
    - UserRepository.list_users
    - user_policy.decide
    - UserInputShaper
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping

from ....domain.repositories import UserFilters, UserRepository
from ....domain.user_policy import Actor, UserAbility, decide
from ...input_shaping import RuleSet, UserInputShaper
from ._helpers import forbidden_error, validation_error
from .user_results import UserListResult


class ListUsersUseCase:
    def __init__(
        self,
        repository: UserRepository,
        shaper: UserInputShaper,
        rules: RuleSet,
    ) -> None:
        self._users = repository
        self._shaper = shaper
        self._rules = rules

    def execute(
        self, actor: Actor, raw_query: Mapping[str, Any] | None = None
    ) -> UserListResult:
        if not decide(actor, UserAbility.VIEW_ANY):
            return UserListResult(
                error=forbidden_error(actor, UserAbility.VIEW_ANY, None)
            )

        shaped = self._shaper.shape(raw_query or {}, self._rules)
        if not shaped.ok:
            return UserListResult(error=validation_error(shaped.failure))

        query = shaped.payload
        filters = UserFilters(
            username=query.get("username"),
            email=query.get("email"),
            status=query.get("status"),
        )
        page = self._users.list_users(
            filters, page=query["page"], per_page=query["per_page"]
        )
        return UserListResult(page=page)
