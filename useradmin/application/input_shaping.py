"""
===============================================================================
TARJETA CRC — application/input_shaping.py
===============================================================================

Módulo:
    Shaping de input de usuarios (validación + filtrado + defaults)

Responsabilidades:
    - Normalizar el payload crudo (trim de strings, blancos -> None).
    - Validar cada campo declarado en un RuleSet, acumulando TODAS las fallas.
    - Filtrar campos vacíos/ausentes según `sometimes` / `required`.
    - Aplicar defaults y convertir tipos (int, enums).
    - Filtrar la salida: la password nunca sale del sistema.

Colaboradores:
    - domain.repositories.UserRepository: chequeos de unicidad.
    - domain.services.BreachChecker: chequeo opcional de passwords filtradas.
    - domain.services.PasswordHasher: hash_sensitive_fields (antes de persistir).
    - application.user_rules: define los RuleSets concretos.

Reglas:
    - `shape` NO hashea ni escribe: dos llamadas iguales dan el mismo resultado.
    - Nunca fail-fast: el cliente recibe todos los errores de una vez.
    - Campos no declarados en el RuleSet se descartan.
===============================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Iterable, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_validation_failed
from ..domain.repositories import UserRepository
from ..domain.services import BreachChecker, PasswordHasher

ShapedPayload = dict[str, Any]

# R: campos tipo password nunca se recortan ni se loguean.
_UNTRIMMED_FIELDS = frozenset({"password", "password_confirmation"})

# R: campos que jamás aparecen en una salida.
_SECRET_FIELDS = frozenset({"password", "password_hash", "password_confirmation"})

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_SYMBOL_PATTERN = re.compile(r"[^A-Za-z0-9\s]")


def _label(name: str) -> str:
    return name.replace("_", " ")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Contexto de validación
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _ShapeContext:
    raw: Mapping[str, Any]
    exclude_id: Optional[int]
    repository: Optional[UserRepository]
    breach_checker: Optional[BreachChecker]


@dataclass(slots=True)
class _Check:
    """Resultado de un modificador: valor (posiblemente convertido) + mensajes."""

    value: Any
    messages: list[str] = field(default_factory=list)
    stop: bool = False
    conflict: bool = False


# ---------------------------------------------------------------------------
# Modificadores
# ---------------------------------------------------------------------------


class Modifier:
    """
    Entrada de una regla de campo.

    Los modificadores de control (`required`, `sometimes`, `nullable`) solo
    marcan la regla; el resto implementa `check()`.
    """

    name: ClassVar[str] = ""

    def check(self, attr: str, value: Any, ctx: _ShapeContext) -> _Check:
        return _Check(value)

    def __repr__(self) -> str:
        return self.name


class _Marker(Modifier):
    pass


class Required(_Marker):
    name = "required"


class Sometimes(_Marker):
    name = "sometimes"


class Nullable(_Marker):
    name = "nullable"


class Confirmed(Modifier):
    name = "confirmed"

    def check(self, attr, value, ctx):
        if ctx.raw.get(f"{attr}_confirmation") != value:
            return _Check(
                value, [f"The {_label(attr)} field confirmation does not match."]
            )
        return _Check(value)


class String(Modifier):
    name = "string"

    def check(self, attr, value, ctx):
        if not isinstance(value, str):
            return _Check(
                value, [f"The {_label(attr)} field must be a string."], stop=True
            )
        return _Check(value)


class Integer(Modifier):
    name = "integer"

    def check(self, attr, value, ctx):
        if isinstance(value, int) and not isinstance(value, bool):
            return _Check(value)
        if isinstance(value, str) and _INTEGER_PATTERN.match(value):
            return _Check(int(value))
        return _Check(
            value, [f"The {_label(attr)} field must be an integer."], stop=True
        )


class Email(Modifier):
    name = "email"

    def check(self, attr, value, ctx):
        message = f"The {_label(attr)} field must be a valid email address."
        if not isinstance(value, str):
            return _Check(value, [message], stop=True)
        try:
            # R: solo sintaxis (sin DNS); el valor se conserva tal cual llegó.
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return _Check(value, [message], stop=True)
        return _Check(value)


@dataclass(frozen=True, repr=False)
class EnumOf(Modifier):
    enum: type[Enum]
    name: ClassVar[str] = "enum"

    def check(self, attr, value, ctx):
        if isinstance(value, self.enum):
            return _Check(value)
        try:
            return _Check(self.enum(value))
        except (ValueError, TypeError):
            return _Check(
                value, [f"The selected {_label(attr)} is invalid."], stop=True
            )


@dataclass(frozen=True, repr=False)
class Min(Modifier):
    limit: int
    name: ClassVar[str] = "min"

    def check(self, attr, value, ctx):
        if isinstance(value, str) and len(value) < self.limit:
            return _Check(
                value,
                [f"The {_label(attr)} field must be at least {self.limit} characters."],
            )
        if isinstance(value, int) and value < self.limit:
            return _Check(
                value, [f"The {_label(attr)} field must be at least {self.limit}."]
            )
        return _Check(value)


@dataclass(frozen=True, repr=False)
class Max(Modifier):
    limit: int
    name: ClassVar[str] = "max"

    def check(self, attr, value, ctx):
        if isinstance(value, str) and len(value) > self.limit:
            return _Check(
                value,
                [
                    f"The {_label(attr)} field must not be greater than "
                    f"{self.limit} characters."
                ],
            )
        if isinstance(value, int) and value > self.limit:
            return _Check(
                value,
                [f"The {_label(attr)} field must not be greater than {self.limit}."],
            )
        return _Check(value)


@dataclass(frozen=True, repr=False)
class Unique(Modifier):
    """
    Unicidad contra el store. Con `ignore_current` el id del target
    (`exclude_id`) queda fuera de la búsqueda.
    """

    table: str
    column: str
    ignore_current: bool = False
    name: ClassVar[str] = "unique"

    def check(self, attr, value, ctx):
        if ctx.repository is None:
            raise RuntimeError(f"unique:{self.table} requiere un UserRepository")
        exclude_id = ctx.exclude_id if self.ignore_current else None
        if ctx.repository.exists_by_field(self.column, value, exclude_id):
            return _Check(
                value, [f"The {_label(attr)} has already been taken."], conflict=True
            )
        return _Check(value)


@dataclass(frozen=True)
class PasswordPolicy:
    """Política de fortaleza de passwords (configurable vía Settings)."""

    min_length: int = 8
    max_length: int = 255
    require_confirmation: bool = True
    require_mixed_case: bool = True
    require_numbers: bool = True
    require_symbols: bool = True
    check_breaches: bool = False


@dataclass(frozen=True, repr=False)
class Password(Modifier):
    policy: PasswordPolicy
    name: ClassVar[str] = "password"

    def check(self, attr, value, ctx):
        label = _label(attr)
        if not isinstance(value, str):
            return _Check(
                value, [f"The {label} field must be a string."], stop=True
            )

        messages: list[str] = []
        if len(value) < self.policy.min_length:
            messages.append(
                f"The {label} field must be at least "
                f"{self.policy.min_length} characters."
            )
        if len(value) > self.policy.max_length:
            messages.append(
                f"The {label} field must not be greater than "
                f"{self.policy.max_length} characters."
            )
        if self.policy.require_mixed_case and not (
            any(c.isupper() for c in value) and any(c.islower() for c in value)
        ):
            messages.append(
                f"The {label} field must contain at least one uppercase "
                "and one lowercase letter."
            )
        if self.policy.require_numbers and not any(c.isdigit() for c in value):
            messages.append(f"The {label} field must contain at least one number.")
        if self.policy.require_symbols and not _SYMBOL_PATTERN.search(value):
            messages.append(f"The {label} field must contain at least one symbol.")

        # R: el chequeo remoto solo corre si la password ya cumple la política local.
        if (
            not messages
            and self.policy.check_breaches
            and ctx.breach_checker is not None
            and ctx.breach_checker.is_compromised(value)
        ):
            messages.append(
                f"The given {label} has appeared in a data leak. "
                f"Please choose a different {label}."
            )
        return _Check(value, messages)


required = Required()
sometimes = Sometimes()
nullable = Nullable()
confirmed = Confirmed()
string = String()
integer = Integer()
email = Email()


# ---------------------------------------------------------------------------
# Reglas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldRule:
    field: str
    modifiers: tuple[Modifier, ...]
    default: Any = None

    def has(self, modifier_name: str) -> bool:
        return any(m.name == modifier_name for m in self.modifiers)

    @property
    def checks(self) -> tuple[Modifier, ...]:
        return tuple(m for m in self.modifiers if not isinstance(m, _Marker))


@dataclass(frozen=True)
class RuleSet:
    """Conjunto inmutable de reglas por forma de payload (create/update/list/output)."""

    name: str
    rules: tuple[FieldRule, ...] = ()
    hashed_fields: frozenset[str] = frozenset()

    @property
    def fields(self) -> Mapping[str, FieldRule]:
        return MappingProxyType({rule.field: rule for rule in self.rules})


OUTPUT_RULES = RuleSet(name="output")


@dataclass(frozen=True)
class ValidationFailure:
    """Errores por campo, en el orden de declaración del RuleSet."""

    errors: dict[str, list[str]]
    conflicting_fields: tuple[str, ...] = ()

    @property
    def fields(self) -> list[str]:
        return list(self.errors)


@dataclass(frozen=True)
class ShapeResult:
    payload: Optional[ShapedPayload] = None
    failure: Optional[ValidationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


# ---------------------------------------------------------------------------
# Shaper
# ---------------------------------------------------------------------------


def _normalize(attr: str, value: Any) -> Any:
    if attr in _UNTRIMMED_FIELDS or not isinstance(value, str):
        return value
    stripped = value.strip()
    return stripped or None


def _should_drop(rule: FieldRule, present: bool, value: Any) -> bool:
    if not present:
        return True
    return (rule.has("sometimes") or rule.has("required")) and _is_empty(value)


class UserInputShaper:
    """
    Valida y filtra payloads crudos según un RuleSet.

    El repositorio solo se consulta para modificadores `unique`; el breach
    checker solo cuando la política de password lo pide.
    """

    def __init__(
        self,
        repository: UserRepository | None = None,
        breach_checker: BreachChecker | None = None,
    ):
        self._repository = repository
        self._breach_checker = breach_checker

    def shape(
        self,
        raw: Mapping[str, Any] | None,
        rule_set: RuleSet,
        *,
        exclude_id: int | None = None,
    ) -> ShapeResult:
        raw = dict(raw or {})
        normalized = {
            attr: _normalize(attr, value)
            for attr, value in raw.items()
            if isinstance(attr, str)
        }
        ctx = _ShapeContext(
            raw=normalized,
            exclude_id=exclude_id,
            repository=self._repository,
            breach_checker=self._breach_checker,
        )

        errors: dict[str, list[str]] = {}
        conflicts: list[str] = []
        payload: ShapedPayload = {}

        for rule in rule_set.rules:
            attr = rule.field
            present = attr in normalized
            value = normalized.get(attr)

            if rule.has("sometimes") and not present:
                self._apply_default(payload, rule)
                continue

            if _is_empty(value):
                if rule.has("required"):
                    errors[attr] = [f"The {_label(attr)} field is required."]
                    continue
                if not _should_drop(rule, present, value):
                    payload[attr] = value
                else:
                    self._apply_default(payload, rule)
                continue

            messages: list[str] = []
            for modifier in rule.checks:
                check = modifier.check(attr, value, ctx)
                value = check.value
                messages.extend(check.messages)
                if check.conflict:
                    conflicts.append(attr)
                if check.stop:
                    break

            if messages:
                errors[attr] = messages
                continue

            payload[attr] = value

        if errors:
            logger.info(
                "validación rechazada",
                extra={"rule_set": rule_set.name, "fields": list(errors)},
            )
            record_validation_failed(rule_set.name)
            return ShapeResult(
                failure=ValidationFailure(
                    errors=errors, conflicting_fields=tuple(conflicts)
                )
            )

        return ShapeResult(payload=payload)

    @staticmethod
    def _apply_default(payload: ShapedPayload, rule: FieldRule) -> None:
        if rule.default is not None:
            payload[rule.field] = rule.default


def shape_output(
    attributes: Mapping[str, Any], rule_set: RuleSet = OUTPUT_RULES
) -> ShapedPayload:
    """
    Filtra atributos para salida. Campos sin regla pasan tal cual; la
    password (plana o hasheada) nunca se incluye.
    """
    rules = rule_set.fields
    out: ShapedPayload = {}
    for attr, value in attributes.items():
        if attr in _SECRET_FIELDS:
            continue
        rule = rules.get(attr)
        if rule is not None and _should_drop(rule, True, value):
            continue
        out[attr] = value
    return out


def hash_sensitive_fields(
    payload: Mapping[str, Any],
    rule_set: RuleSet,
    hasher: PasswordHasher,
    *,
    fields: Iterable[str] | None = None,
) -> ShapedPayload:
    """Copia del payload con los campos sensibles reemplazados por su hash."""
    targets = set(fields) if fields is not None else set(rule_set.hashed_fields)
    hashed = dict(payload)
    for attr in targets:
        value = hashed.get(attr)
        if isinstance(value, str) and value:
            hashed[attr] = hasher.hash(value)
    return hashed
