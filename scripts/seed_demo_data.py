"""Seed script for the bootstrap administrator and a demo employee."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from registry.core.config import get_settings
from registry.db.session import engine, get_session
from registry.models import Base, User, UserRole, UserStatus
from registry.services.credentials import hash_password

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed(session: Session) -> None:
    """Create the bootstrap ADMIN and a demo EMPLOYEE unless they already exist."""

    settings = get_settings()
    existing = set(session.scalars(select(User.username)))

    seed_users = [
        (settings.bootstrap_admin_username, settings.bootstrap_admin_email, UserRole.ADMIN),
        ("employee", "employee@registry.local", UserRole.EMPLOYEE),
    ]

    for username, email, role in seed_users:
        if username in existing:
            logger.info("User %s already exists", username)
            continue
        session.add(
            User(
                username=username,
                name=username.title(),
                email=email.lower(),
                role=role,
                status=UserStatus.ACTIVE,
                hashed_password=hash_password(
                    settings.bootstrap_admin_password, rounds=settings.password_hash_rounds
                ),
            )
        )
        logger.info("Added user %s", username)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session)


if __name__ == "__main__":
    main()
