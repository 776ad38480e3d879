"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from registry.api.routes import auth, health, profiles, users


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(users.router, prefix="/users", tags=["users"])
    api_router.include_router(profiles.router, prefix="/client-profiles", tags=["client-profiles"])

    application.include_router(api_router)


__all__ = ["register_routes"]
