"""
Infrastructure Services (Infrastructure Layer)

Facade del paquete `infrastructure.services`: re-exporta los adapters para
que la composición (container) importe desde un único lugar.
"""

from .pwned_passwords import NullBreachChecker, PwnedPasswordsChecker
from .retry import create_retry_decorator, is_transient_error

__all__ = [
    "NullBreachChecker",
    "PwnedPasswordsChecker",
    "create_retry_decorator",
    "is_transient_error",
]
