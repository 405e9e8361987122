"""
Name: create_admin

Bootstrap de la primera cuenta administradora directamente en Postgres,
para entornos donde el seed de desarrollo no corre (staging, producción).

- Idempotente: si el email ya existe (sin distinguir mayúsculas) no toca nada.
- La password se pide por getpass cuando no viene por argumento.
- Hash Argon2, el mismo que usa la API.

Uso:
  export DATABASE_URL=postgresql://...
  python -m scripts.create_admin --username root --email root@example.com
"""

from __future__ import annotations

import argparse
import getpass
import os

import psycopg

from useradmin.domain.entities import UserRole, UserStatus
from useradmin.identity.auth_users import hash_password

USERNAME_MAX_LENGTH = 40


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create_admin", description="Crea la cuenta admin inicial."
    )
    parser.add_argument("--username")
    parser.add_argument("--email")
    parser.add_argument("--password", help="si se omite, se pide por consola")
    parser.add_argument(
        "--role",
        default=UserRole.ADMIN.value,
        choices=[role.value for role in UserRole],
    )
    parser.add_argument(
        "--status", default=UserStatus.ACTIVE.value, choices=UserStatus.values()
    )
    return parser


def _ask(label: str, given: str | None) -> str:
    value = (given if given is not None else input(f"{label}: ")).strip()
    if not value:
        raise SystemExit(f"{label} es obligatorio.")
    return value


def _ask_password(given: str | None) -> str:
    if given:
        return given
    first = getpass.getpass("Password: ")
    if not first:
        raise SystemExit("Password es obligatoria.")
    if getpass.getpass("Repetir password: ") != first:
        raise SystemExit("Las passwords no coinciden.")
    return first


def ensure_user(
    conn: psycopg.Connection,
    *,
    username: str,
    email: str,
    password: str,
    role: str,
    status: str,
) -> tuple[int, bool]:
    """Devuelve (id, creado)."""
    existing = conn.execute(
        "SELECT id FROM users WHERE lower(email) = lower(%s)", (email,)
    ).fetchone()
    if existing is not None:
        return existing[0], False

    (user_id,) = conn.execute(
        "INSERT INTO users (username, email, password_hash, role, status) "
        "VALUES (%s, %s, %s, %s, %s) RETURNING id",
        (username, email, hash_password(password), role, status),
    ).fetchone()
    return user_id, True


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise SystemExit("Falta DATABASE_URL.")

    username = _ask("Username", args.username)
    if len(username) > USERNAME_MAX_LENGTH:
        raise SystemExit(f"Username supera {USERNAME_MAX_LENGTH} caracteres.")
    email = _ask("Email", args.email).lower()
    password = _ask_password(args.password)

    # R: el context manager de psycopg hace commit al salir sin excepción.
    with psycopg.connect(database_url) as conn:
        user_id, created = ensure_user(
            conn,
            username=username,
            email=email,
            password=password,
            role=args.role,
            status=args.status,
        )

    verb = "creado" if created else "ya existía"
    print(f"Usuario {verb}: id={user_id} email={email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
