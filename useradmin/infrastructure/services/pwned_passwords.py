"""
===============================================================================
TARJETA CRC — infrastructure/services/pwned_passwords.py
===============================================================================

Módulo:
    Chequeo de passwords filtradas (Pwned Passwords, k-anonymity)

Responsabilidades:
    - Implementar BreachChecker consultando el rango por prefijo SHA-1.
    - Nunca enviar la password ni su hash completo: solo 5 caracteres.
    - Reintentar fallas transitorias (tenacity) y fallar cerrado si persisten.

Colaboradores:
    - httpx.Client (HTTP saliente)
    - infrastructure.services.retry.create_retry_decorator
    - crosscutting.exceptions.BreachCheckError (-> 503)
===============================================================================
"""

from __future__ import annotations

import hashlib

import httpx

from ...crosscutting.exceptions import BreachCheckError
from ...crosscutting.logger import logger
from .retry import create_retry_decorator

_PREFIX_LENGTH = 5


class PwnedPasswordsChecker:
    """
    BreachChecker contra la API de rangos de Pwned Passwords.

    El cliente httpx es inyectable (tests con httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = "https://api.pwnedpasswords.com/range/",
        *,
        timeout_seconds: float = 5.0,
        threshold: int = 0,
        client: httpx.Client | None = None,
        max_attempts: int | None = None,
        base_delay: float | None = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._threshold = threshold
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            headers={"Add-Padding": "true", "User-Agent": "useradmin"},
        )
        self._fetch_range = create_retry_decorator(
            max_attempts=max_attempts, base_delay=base_delay
        )(self._fetch_range_once)

    def _fetch_range_once(self, prefix: str) -> str:
        response = self._client.get(f"{self._base_url}{prefix}")
        response.raise_for_status()
        return response.text

    def is_compromised(self, plaintext: str) -> bool:
        digest = hashlib.sha1(plaintext.encode("utf-8")).hexdigest().upper()
        prefix, suffix = digest[:_PREFIX_LENGTH], digest[_PREFIX_LENGTH:]

        try:
            body = self._fetch_range(prefix)
        except httpx.HTTPError as exc:
            logger.error(
                "Pwned Passwords no disponible",
                extra={"error_type": type(exc).__name__},
            )
            raise BreachCheckError(
                "Breach check service unavailable", original_error=exc
            ) from exc

        for line in body.splitlines():
            candidate, _, count = line.strip().partition(":")
            if candidate.upper() != suffix:
                continue
            try:
                occurrences = int(count)
            except ValueError:
                occurrences = 0
            # R: padding devuelve entradas con count 0; no cuentan como filtradas.
            return occurrences > self._threshold

        return False


class NullBreachChecker:
    """BreachChecker deshabilitado: nunca reporta filtraciones."""

    def is_compromised(self, plaintext: str) -> bool:
        return False
