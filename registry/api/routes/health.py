"""Health and readiness endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from registry.api.deps import get_db_session
from registry.core.config import get_settings
from registry.core.errors import StoreUnavailableError
from registry.services.profile_store import ProfileStore

router = APIRouter()


@router.get("/healthz", summary="Liveness check")
def health_check() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "service": settings.app_name}


@router.get("/readyz", summary="Readiness check")
def readiness_check(session: Session = Depends(get_db_session)) -> JSONResponse:
    settings = get_settings()
    try:
        ProfileStore(session).ping()
    except StoreUnavailableError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "service": settings.app_name, "error": str(exc)},
        )
    return JSONResponse(content={"status": "ready", "service": settings.app_name})
