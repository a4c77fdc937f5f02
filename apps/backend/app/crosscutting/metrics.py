"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus): observabilidad de bajo acoplamiento

Responsabilidades:
    - Definir métricas Prometheus en un registry propio (no el global).
    - Proveer funciones pequeñas y estables para registrar eventos.
    - Cuidar cardinalidad (NO rut, NO worker_id, NO tokens).
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - crosscutting.middleware: registra latencia y conteo HTTP.
    - application/usecases: firmas creadas, enrolamientos, disputas, lotes offline.
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

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "firmas_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "firmas_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=_registry,
)

# ------------------------
# Firmas
# ------------------------
_signatures_created_total = Counter(
    "firmas_signatures_created_total",
    "Firmas escritas en el ledger",
    ["purpose", "method"],
    registry=_registry,
)

_offline_items_total = Counter(
    "firmas_offline_items_total",
    "Ítems procesados en lotes offline por resultado",
    ["outcome"],
    registry=_registry,
)

_enrollment_total = Counter(
    "firmas_enrollment_total",
    "Enrolamientos completados por camino (fresh|resync|worker)",
    ["path"],
    registry=_registry,
)

_identity_sync_failures_total = Counter(
    "firmas_identity_sync_failures_total",
    "Fallas best-effort al sincronizar la identidad vinculada",
    ["target"],
    registry=_registry,
)

_disputes_total = Counter(
    "firmas_disputes_total",
    "Transiciones del sub-estado de disputa",
    ["transition"],
    registry=_registry,
)

_notification_failures_total = Counter(
    "firmas_notification_failures_total",
    "Notificaciones best-effort que fallaron",
    ["template"],
    registry=_registry,
)

# ------------------------
# DB
# ------------------------
_db_query_duration = Histogram(
    "firmas_db_query_duration_seconds",
    "Duración de statements SQL por tipo",
    ["kind"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
    registry=_registry,
)


# -----------------------------------------------------------------------------
# API pública (helpers de registro)
# -----------------------------------------------------------------------------


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """Registra métricas HTTP.

    - endpoint se normaliza para no explotar cardinalidad.
    - status se agrupa por 2xx/4xx/5xx.
    """
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized,
        method=method,
        status=_status_bucket(status_code),
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_signature_created(purpose: str, method: str) -> None:
    """Cuenta firmas escritas (interactivas, enrolamiento u offline)."""
    _signatures_created_total.labels(purpose=purpose, method=method).inc()


def record_offline_item(outcome: str) -> None:
    """Cuenta ítems offline. outcome: accepted | código de error."""
    _offline_items_total.labels(outcome=outcome).inc()


def record_enrollment(path: str) -> None:
    """Cuenta enrolamientos. path: fresh | resync | worker."""
    _enrollment_total.labels(path=path).inc()


def record_identity_sync_failure(target: str) -> None:
    """Cuenta fallas al propagar hacia la identidad vinculada (user|worker)."""
    _identity_sync_failures_total.labels(target=target).inc()


def record_dispute_transition(transition: str) -> None:
    """Cuenta transiciones de disputa (disputed | valid | revoked)."""
    _disputes_total.labels(transition=transition).inc()


def record_notification_failure(template: str) -> None:
    _notification_failures_total.labels(template=template).inc()


def observe_db_query_duration(kind: str, seconds: float) -> None:
    """kind: SELECT | INSERT | UPDATE | ... (baja cardinalidad)."""
    _db_query_duration.labels(kind=kind).observe(seconds)


# -----------------------------------------------------------------------------
# Helpers internos
# -----------------------------------------------------------------------------


def _normalize_endpoint(path: str) -> str:
    """Normaliza paths para evitar cardinalidad alta.

    Reemplaza UUIDs, tokens de firma e IDs numéricos por placeholders.
    """
    path = re.sub(r"/verify/[^/]+", "/verify/{token}", path)
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path


def _status_bucket(code: int) -> str:
    """Agrupa status code para baja cardinalidad."""
    if 200 <= code < 300:
        return "2xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


# -----------------------------------------------------------------------------
# Exposición del endpoint /metrics
# -----------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
