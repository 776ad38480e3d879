"""Authentication endpoints and role-gating dependencies."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from cryptography.hazmat.primitives import serialization
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from registry.api.deps import get_db_session, get_mailer
from registry.core.config import Settings, get_settings
from registry.models import User, UserStatus
from registry.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    PasswordChangeRequest,
    TokenResponse,
    UserRead,
)
from registry.services.credentials import generate_password, hash_password, verify_password
from registry.services.mailer import CredentialMailer

logger = logging.getLogger(__name__)

RoleName = Literal["ADMIN", "EMPLOYEE", "CLIENT"]
STAFF_ROLES: tuple[RoleName, ...] = ("ADMIN", "EMPLOYEE")

router = APIRouter()
security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    username: str
    role: RoleName
    iat: datetime
    exp: datetime


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    username: str
    role: RoleName


def _signing_key(settings: Settings) -> Any:
    if settings.jwt_algorithm.startswith(("RS", "ES")):
        if not settings.jwt_private_key:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="JWT private key is not configured",
            )
        try:
            return serialization.load_pem_private_key(settings.jwt_private_key.encode("utf-8"), password=None)
        except ValueError as exc:  # pragma: no cover - configuration issue
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Invalid JWT signing key",
            ) from exc
    return settings.jwt_secret


def _verification_key(settings: Settings) -> str:
    if settings.jwt_algorithm.startswith(("RS", "ES")):
        public_key = _signing_key(settings).public_key()
        return public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("utf-8")
    return settings.jwt_secret


def create_access_token(user: User, *, settings: Settings) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user.id,
        "username": user.username,
        "role": user.role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.access_token_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, _signing_key(settings), algorithm=settings.jwt_algorithm)


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, _verification_key(settings), algorithms=[settings.jwt_algorithm])
        return TokenPayload(**payload)
    except (JWTError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def _load_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    session: Session = Depends(get_db_session),
) -> AuthenticatedUser:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    payload = _decode_token(token=credentials.credentials, settings=get_settings())
    request.state.actor = payload.username
    # The stored account, not the token claims, decides status and role.
    user = _load_user(session, payload.sub)
    request.state.role = user.role.value
    return AuthenticatedUser(user_id=user.id, username=user.username, role=user.role.value)


def require_role(*roles: RoleName) -> Callable[..., AuthenticatedUser]:
    allowed_roles: set[str] = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


@router.post("/login", response_model=TokenResponse, summary="Issue a JWT access token")
def login(request: LoginRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    settings = get_settings()
    identifier = request.identifier.strip()
    statement = select(User).where(
        or_(User.username == identifier, func.lower(User.email) == identifier.lower())
    )
    user = session.scalars(statement).first()
    if user is None or not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return TokenResponse(
        access_token=create_access_token(user, settings=settings),
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserRead.model_validate(user),
    )


@router.post("/forgot-password", summary="Email a temporary password")
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_db_session),
    mailer: CredentialMailer = Depends(get_mailer),
) -> dict[str, bool]:
    settings = get_settings()
    statement = (
        select(User)
        .where(func.lower(User.email) == payload.email, User.status == UserStatus.ACTIVE)
        .order_by(User.created_at, User.username)
    )
    user = session.scalars(statement).first()
    # Unknown emails get the same answer.
    if user is None or user.email is None:
        logger.info("password reset requested for unknown email")
        return {"success": True}

    temporary = generate_password(settings.generated_password_length)
    user.hashed_password = hash_password(temporary, rounds=settings.password_hash_rounds)
    session.commit()
    logger.info("temporary password issued", extra={"user_id": user.id})
    background_tasks.add_task(
        mailer.send_password_reset, to=user.email, name=user.name, username=user.username, password=temporary
    )
    return {"success": True}


@router.get("/me", response_model=UserRead, summary="Return the authenticated account")
def me(
    current: AuthenticatedUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> UserRead:
    return UserRead.model_validate(_load_user(session, current.user_id))


@router.post("/change-password", summary="Change the authenticated account's password")
def change_password(
    payload: PasswordChangeRequest,
    current: AuthenticatedUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> dict[str, bool]:
    user = _load_user(session, current.user_id)
    user.hashed_password = hash_password(payload.new_password, rounds=get_settings().password_hash_rounds)
    session.commit()
    return {"success": True}


__all__ = [
    "AuthenticatedUser",
    "RoleName",
    "STAFF_ROLES",
    "create_access_token",
    "get_current_user",
    "require_role",
    "router",
]
