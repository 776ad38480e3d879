"""Prometheus metrics for the HTTP surface and profile workflows."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from fastapi.routing import iter_route_contexts
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "registry_http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "route"),
)
REQUEST_COUNTER = Counter(
    "registry_http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "route", "status"),
)
PROFILES_CREATED_COUNTER = Counter(
    "registry_client_profiles_created_total",
    "Client profiles created.",
)
PROFILES_DELETED_COUNTER = Counter(
    "registry_client_profiles_deleted_total",
    "Client profiles deleted.",
)
CREDENTIALS_ISSUED_COUNTER = Counter(
    "registry_credentials_issued_total",
    "Companion login accounts issued for new client profiles.",
)
CREDENTIAL_FAILURE_COUNTER = Counter(
    "registry_credential_failures_total",
    "Credential issuance or delivery failures, by stage.",
    labelnames=("stage",),
)
REVIEW_TRANSITION_COUNTER = Counter(
    "registry_holding_reviews_total",
    "Holding review saves, by resulting status.",
    labelnames=("status",),
)


def _route_template(request: Request) -> str:
    # Included routers keep their own unprefixed routes; the effective route
    # context carries the full template.
    route = request.scope.get("route")
    if route is not None:
        for context in iter_route_contexts(request.app.routes):
            if context.original_route is route and context.path_format:
                return context.path_format
    return request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        start_time = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            route = _route_template(request)
            REQUEST_LATENCY_SECONDS.labels(method=request.method, route=route).observe(
                time.perf_counter() - start_time
            )
            REQUEST_COUNTER.labels(method=request.method, route=route, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "CREDENTIALS_ISSUED_COUNTER",
    "CREDENTIAL_FAILURE_COUNTER",
    "PROFILES_CREATED_COUNTER",
    "PROFILES_DELETED_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "REVIEW_TRANSITION_COUNTER",
    "metrics_endpoint",
    "metrics_router",
]
