"""FastAPI application entrypoint."""
from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from registry.api.routes import register_routes
from registry.core.config import Settings, get_settings
from registry.core.errors import (
    DuplicateProfileError,
    HoldingNotFoundError,
    ProfileNotFoundError,
    ProfileValidationError,
    RegistryError,
    StoreUnavailableError,
)
from registry.core.logging import configure_logging
from registry.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)

ERROR_STATUS: dict[type[RegistryError], int] = {
    ProfileValidationError: status.HTTP_400_BAD_REQUEST,
    ProfileNotFoundError: status.HTTP_404_NOT_FOUND,
    HoldingNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateProfileError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_REQUEST_SECTIONS = {"body", "query", "path", "header", "cookie"}


def _error_body(message: str, field: str | None = None) -> dict[str, str]:
    body = {"error": message}
    if field:
        body["field"] = field
    return body


def _registry_error_handler(_: Request, exc: Exception) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return JSONResponse(status_code=status_code, content=_error_body(str(exc), getattr(exc, "field", None)))


def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body("Invalid request"))
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if str(part) not in _REQUEST_SECTIONS]
    field = ".".join(loc) or None
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(message, field))


def _http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=exc.headers,
    )


def create_application(settings: Settings | None = None) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    configure_logging()
    settings = settings or get_settings()

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )

    application.add_exception_handler(RegistryError, _registry_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)

    application.add_middleware(AuditMiddleware, settings=settings)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()
