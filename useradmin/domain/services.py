"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios (Protocols) del Dominio

Responsabilidades:
    - Definir contratos para servicios externos usados por la aplicación.
    - Permitir inyección/mocking en tests sin tocar infraestructura.

Colaboradores:
    - identity.auth_users.Argon2PasswordHasher (PasswordHasher)
    - infrastructure.services.pwned_passwords (BreachChecker)
    - application.input_shaping: usa BreachChecker al validar passwords
===============================================================================
"""

from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Contrato para hashear y verificar contraseñas."""

    def hash(self, plaintext: str) -> str: ...

    def verify(self, password_hash: str, plaintext: str) -> bool: ...


class BreachChecker(Protocol):
    """Contrato para detectar contraseñas expuestas en filtraciones públicas."""

    def is_compromised(self, plaintext: str) -> bool:
        """True si la contraseña aparece en filtraciones conocidas."""
        ...
