"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Identidad del actor: passwords Argon2 y access tokens JWT (HS256)

Responsabilidades:
    - Hash y verificación de passwords con argon2-cffi.
    - Login por email + password (solo cuentas `active`).
    - Emisión y validación del access token.
    - Dependencias FastAPI que resuelven el UserRecord / Actor del request,
      leyendo el token del header Authorization o de la cookie.

Colaboradores:
    - crosscutting.config.get_settings (secreto, TTL, nombre de cookie)
    - crosscutting.error_responses (401 / 403)
    - container.get_user_repository
    - domain.user_policy.Actor

Notas:
    - Email inexistente y password incorrecta dan el mismo resultado (None).
    - Credenciales correctas con cuenta no activa: 403 explícito.
    - Ni tokens ni passwords llegan a los logs.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt
from argon2 import PasswordHasher as _Argon2
from argon2.exceptions import Argon2Error, InvalidHashError
from fastapi import Header, Request

from ..context import set_actor_context
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import forbidden, unauthorized
from ..crosscutting.logger import logger
from ..domain.entities import UserRecord, UserRole
from ..domain.repositories import UserRepository
from ..domain.user_policy import Actor

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
_REQUIRED_CLAIMS = ["sub", "email", "role", "exp"]

INACTIVE_USER_MESSAGE = "El usuario está inactivo."
_INVALID_TOKEN = "Token inválido."


@dataclass(frozen=True, slots=True)
class AuthSettings:
    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_cookie_name: str


@dataclass(frozen=True, slots=True)
class TokenPayload:
    user_id: int
    email: str
    role: UserRole


def get_auth_settings() -> AuthSettings:
    s = get_settings()
    return AuthSettings(s.jwt_secret, s.jwt_access_ttl_minutes, s.jwt_cookie_name)


def _users() -> UserRepository:
    from ..container import get_user_repository

    return get_user_repository()


# =============================================================================
# Passwords
# =============================================================================


class Argon2PasswordHasher:
    """PasswordHasher de dominio sobre argon2-cffi (salt aleatorio por hash)."""

    def __init__(self, argon2: _Argon2 | None = None) -> None:
        self._argon2 = argon2 or _Argon2()

    def hash(self, plaintext: str) -> str:
        return self._argon2.hash(plaintext)

    def verify(self, password_hash: str, plaintext: str) -> bool:
        try:
            return self._argon2.verify(password_hash, plaintext)
        except (Argon2Error, InvalidHashError):
            return False


_default_hasher = Argon2PasswordHasher()


def hash_password(password: str) -> str:
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _default_hasher.verify(password_hash, password)


def authenticate_user(
    email: str,
    password: str,
    *,
    repository: UserRepository | None = None,
    hasher: Argon2PasswordHasher | None = None,
) -> UserRecord | None:
    email = (email or "").strip().lower()
    if not (email and password):
        return None

    user = (repository or _users()).find_by_email(email)
    if user is None or not (hasher or _default_hasher).verify(
        user.password_hash, password
    ):
        return None

    if not user.status.can_authenticate:
        logger.warning(
            "Login rechazado por estado de cuenta",
            extra={"user_id": user.id, "status": user.status.value},
        )
        raise forbidden(INACTIVE_USER_MESSAGE)
    return user


# =============================================================================
# Access tokens
# =============================================================================


def create_access_token(
    user: UserRecord, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Returns (token, expires_in_seconds)."""
    cfg = settings or get_auth_settings()
    ttl = timedelta(minutes=cfg.jwt_access_ttl_minutes)
    issued = datetime.now(timezone.utc)

    claims: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "typ": ACCESS_TOKEN_TYPE,
        "iat": issued,
        "exp": issued + ttl,
    }
    return jwt.encode(claims, cfg.jwt_secret, algorithm=JWT_ALGORITHM), int(
        ttl.total_seconds()
    )


def decode_access_token(
    token: str, settings: AuthSettings | None = None
) -> TokenPayload:
    cfg = settings or get_auth_settings()
    try:
        claims = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized(_INVALID_TOKEN) from exc

    if claims.get("typ", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise unauthorized("Tipo de token inválido.")

    try:
        return TokenPayload(
            user_id=int(claims["sub"]),
            email=str(claims["email"]),
            role=UserRole(str(claims["role"])),
        )
    except (TypeError, ValueError) as exc:
        raise unauthorized(_INVALID_TOKEN) from exc


def get_current_user(token: str) -> UserRecord:
    user = _users().find_by_id(decode_access_token(token).user_id)
    if user is None:
        # R: usuario borrado con token aún vigente.
        raise unauthorized(_INVALID_TOKEN)
    if not user.status.can_authenticate:
        raise forbidden(INACTIVE_USER_MESSAGE)
    return user


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Authorization: Bearer gana sobre la cookie."""
    scheme, _, credentials = (authorization or "").strip().partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    cookie_name = get_auth_settings().jwt_cookie_name.strip() or "access_token"
    return request.cookies.get(cookie_name)


# =============================================================================
# FastAPI dependencies
# =============================================================================


def require_user() -> Callable:
    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> UserRecord:
        token = extract_access_token(request, authorization)
        if not token:
            raise unauthorized("Falta token Bearer.")
        user = get_current_user(token)
        request.state.user = user
        set_actor_context(user.id)
        return user

    return dependency


def require_actor() -> Callable:
    resolve_user = require_user()

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> Actor:
        return Actor.from_user(await resolve_user(request, authorization))

    return dependency
