"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from fastapi import BackgroundTasks, Depends
from sqlalchemy.orm import Session

from registry.db.session import SessionLocal
from registry.services.credentials import CredentialIssuer
from registry.services.mailer import CredentialMailer
from registry.services.profiles import ProfileService


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_mailer() -> CredentialMailer:
    return CredentialMailer()


def get_profile_service(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_db_session),
) -> ProfileService:
    """Profile service whose credential email is sent after the response."""

    issuer = CredentialIssuer(session, dispatch=background_tasks.add_task)
    return ProfileService(session, post_create_hooks=[issuer])


__all__ = ["get_db_session", "get_mailer", "get_profile_service"]
