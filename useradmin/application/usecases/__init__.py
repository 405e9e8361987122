"""
Use Cases Layer (Business Operations)

Structure
---------
usecases/
└── users/      # User administration (list, get, create, update, delete)

Usage
-----
    from useradmin.application.usecases.users import CreateUserUseCase
"""

from .users import (
    CreateUserUseCase,
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    UpdateUserUseCase,
    UserError,
    UserErrorCode,
    UserListResult,
    UserResult,
)

__all__ = [
    "CreateUserUseCase",
    "DeleteUserUseCase",
    "GetUserUseCase",
    "ListUsersUseCase",
    "UpdateUserUseCase",
    "UserError",
    "UserErrorCode",
    "UserListResult",
    "UserResult",
]
