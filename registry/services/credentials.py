"""Credential generation and companion account provisioning."""
from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from registry.core.config import Settings, get_settings
from registry.models import User, UserRole
from registry.obs import CREDENTIALS_ISSUED_COUNTER, service_span
from registry.schemas.profile import ClientProfileRead
from registry.services.mailer import CredentialMailer

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz0123456789!@$%"
USERNAME_BASE_LENGTH = 12
USERNAME_SUFFIX_DIGITS = 4
USERNAME_WIDE_SUFFIX_DIGITS = 6
MAX_USERNAME_ATTEMPTS = 10

Dispatcher = Callable[..., Any]


def hash_password(plain: str, *, rounds: int = 12) -> str:
    if not plain:
        raise ValueError("Password is required for hashing")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


def generate_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def username_base(name: str | None, fallback: str = "user") -> str:
    first = (name or "").strip().split(" ", 1)[0].lower()
    return re.sub(r"[^a-z0-9]+", "", first)[:USERNAME_BASE_LENGTH] or fallback


def _numeric_suffix(digits: int) -> str:
    return f"{secrets.randbelow(10**digits):0{digits}d}"


def generate_username(name: str | None, exists: Callable[[str], bool], *, fallback: str = "user") -> str:
    """Derive a login name from the first name plus a random numeric suffix.

    Candidates already taken according to ``exists`` are skipped; after
    ``MAX_USERNAME_ATTEMPTS`` collisions the suffix widens until a free name is found.
    """

    base = username_base(name, fallback)
    attempts = 0
    while True:
        digits = USERNAME_SUFFIX_DIGITS if attempts < MAX_USERNAME_ATTEMPTS else USERNAME_WIDE_SUFFIX_DIGITS
        candidate = f"{base}{_numeric_suffix(digits)}"
        if not exists(candidate):
            return candidate
        attempts += 1


def run_inline(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    func(*args, **kwargs)


@dataclass(slots=True, frozen=True)
class IssuedCredential:
    user_id: str
    username: str
    email: str | None
    password: str = field(repr=False)


class CredentialIssuer:
    """Post-create hook issuing a CLIENT login account for a new profile.

    The account row is committed synchronously; the plaintext password leaves
    the process only through the credential email, which is handed to
    ``dispatch`` so the caller decides whether it runs inline or after the
    response.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        mailer: CredentialMailer | None = None,
        dispatch: Dispatcher = run_inline,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._mailer = mailer or CredentialMailer(settings=self._settings)
        self._dispatch = dispatch

    def __call__(self, profile: ClientProfileRead) -> IssuedCredential:
        with service_span("credentials.issue", profile_id=profile.id):
            name = profile.shareholder_name.name1
            username = generate_username(name, self._username_taken)
            password = generate_password(self._settings.generated_password_length)
            user = User(
                username=username,
                name=name,
                email=profile.email_id.lower() if profile.email_id else None,
                hashed_password=hash_password(password, rounds=self._settings.password_hash_rounds),
                role=UserRole.CLIENT,
                profile_id=profile.id,
            )
            self._session.add(user)
            self._session.commit()

        CREDENTIALS_ISSUED_COUNTER.inc()
        logger.info(
            "issued companion account",
            extra={"profile_id": profile.id, "user_id": user.id, "username": username},
        )
        if profile.email_id:
            self._dispatch(
                self._mailer.send_credentials,
                to=profile.email_id,
                name=name,
                username=username,
                password=password,
            )
        else:
            logger.info("profile has no email; credentials not mailed", extra={"profile_id": profile.id})
        return IssuedCredential(user_id=user.id, username=username, email=profile.email_id, password=password)

    def _username_taken(self, candidate: str) -> bool:
        statement = select(User.id).where(User.username == candidate)
        return self._session.scalar(statement) is not None


__all__ = [
    "CredentialIssuer",
    "Dispatcher",
    "IssuedCredential",
    "PASSWORD_ALPHABET",
    "generate_password",
    "generate_username",
    "hash_password",
    "run_inline",
    "username_base",
    "verify_password",
]
