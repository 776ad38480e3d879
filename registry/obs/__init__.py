"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, mask_payload
from .metrics import (
    CREDENTIAL_FAILURE_COUNTER,
    CREDENTIALS_ISSUED_COUNTER,
    PROFILES_CREATED_COUNTER,
    PROFILES_DELETED_COUNTER,
    REQUEST_COUNTER,
    REQUEST_LATENCY_SECONDS,
    REVIEW_TRANSITION_COUNTER,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    service_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "CREDENTIAL_FAILURE_COUNTER",
    "CREDENTIALS_ISSUED_COUNTER",
    "PROFILES_CREATED_COUNTER",
    "PROFILES_DELETED_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "REVIEW_TRANSITION_COUNTER",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "mask_payload",
    "metrics_router",
    "service_span",
]
