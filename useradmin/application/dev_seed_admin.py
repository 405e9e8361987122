"""
===============================================================================
TASK: admin de desarrollo (solo APP_ENV=local)
===============================================================================

Crear usuarios es una acción exclusiva de admins, así que una base vacía no
tiene forma de arrancar. Con DEV_SEED_ADMIN=true el startup crea ese primer
admin con las credenciales DEV_SEED_ADMIN_*.

  - Fuera de `local` la opción activada es un error de configuración y corta
    el arranque.
  - Idempotente por email.
  - Escribe directo en el repositorio: la password de desarrollo no tiene que
    cumplir la PasswordPolicy.

En otros entornos el primer admin se crea con scripts/create_admin.py.
===============================================================================
"""

from __future__ import annotations

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import UserRecord, UserRole, UserStatus
from ..domain.repositories import UserRepository
from ..domain.services import PasswordHasher


def ensure_dev_admin(
    settings: Settings,
    *,
    user_repo: UserRepository,
    password_hasher: PasswordHasher,
) -> UserRecord | None:
    """Returns the seeded (or already present) admin, or None when disabled."""
    if not settings.dev_seed_admin:
        return None

    env = (settings.app_env or "").strip().lower()
    if env != "local":
        raise RuntimeError(
            f"DEV_SEED_ADMIN=true with APP_ENV='{env}': "
            "the dev seed must be 'local' only"
        )

    username = (settings.dev_seed_admin_username or "").strip()
    email = (settings.dev_seed_admin_email or "").strip().lower()
    password = settings.dev_seed_admin_password or ""
    missing = [
        name
        for name, value in (
            ("DEV_SEED_ADMIN_USERNAME", username),
            ("DEV_SEED_ADMIN_EMAIL", email),
            ("DEV_SEED_ADMIN_PASSWORD", password),
        )
        if not value
    ]
    if missing:
        raise ValueError(f"DEV_SEED_ADMIN=true but empty: {', '.join(missing)}")

    current = user_repo.find_by_email(email)
    if current is not None:
        logger.info("Seed admin ya presente", extra={"user_id": current.id})
        return current

    admin = user_repo.create(
        username=username,
        email=email,
        password_hash=password_hasher.hash(password),
        status=UserStatus.ACTIVE,
        role=UserRole.ADMIN,
    )
    logger.info("Seed admin creado", extra={"user_id": admin.id, "email": email})
    return admin
