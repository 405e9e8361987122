"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

Métricas Prometheus de la API de usuarios, en un CollectorRegistry propio
(así los tests y múltiples apps en el mismo proceso no chocan con el
registry global de prometheus_client).

Series:
    useradmin_requests_total{endpoint,method,status}
    useradmin_request_latency_seconds{endpoint,method}
    useradmin_policy_denied_total{ability}
    useradmin_validation_failed_total{rule_set}

Labels acotados: los ids numéricos del path se colapsan a `{id}` y el status
se agrupa por centena (2xx, 4xx, ...).
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

_REQUESTS = Counter(
    "useradmin_requests_total",
    "HTTP requests atendidos",
    ["endpoint", "method", "status"],
    registry=_registry,
)
_LATENCY = Histogram(
    "useradmin_request_latency_seconds",
    "Duración de requests HTTP",
    ["endpoint", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    registry=_registry,
)
_POLICY_DENIED = Counter(
    "useradmin_policy_denied_total",
    "Acciones denegadas por UserPolicy",
    ["ability"],
    registry=_registry,
)
_VALIDATION_FAILED = Counter(
    "useradmin_validation_failed_total",
    "Inputs rechazados por UserInputShaper",
    ["rule_set"],
    registry=_registry,
)

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


def _normalize_endpoint(path: str) -> str:
    return _NUMERIC_SEGMENT.sub("/{id}", path)


def record_request_metrics(
    endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    route = _normalize_endpoint(endpoint)
    _REQUESTS.labels(route, method, f"{status_code // 100}xx").inc()
    _LATENCY.labels(route, method).observe(latency_seconds)


def record_policy_denied(ability: str) -> None:
    _POLICY_DENIED.labels(ability).inc()


def record_validation_failed(rule_set: str) -> None:
    _VALIDATION_FAILED.labels(rule_set).inc()


def get_metrics_response() -> tuple[bytes, str]:
    return generate_latest(_registry), CONTENT_TYPE_LATEST
