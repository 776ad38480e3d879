"""Administrative account management."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from registry.api.deps import get_db_session
from registry.api.routes.auth import AuthenticatedUser, require_role
from registry.core.config import get_settings
from registry.models import User
from registry.schemas.user import PasswordResetRequest, UserList, UserRead, UserUpdate
from registry.services.credentials import hash_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserList)
def list_users(
    session: Session = Depends(get_db_session),
    _: AuthenticatedUser = Depends(require_role("ADMIN")),
) -> UserList:
    users = session.scalars(select(User).order_by(User.created_at.desc(), User.username)).all()
    return UserList(data=[UserRead.model_validate(user) for user in users])


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: str,
    payload: UserUpdate,
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_role("ADMIN")),
) -> UserRead:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, value)
    session.commit()
    session.refresh(user)
    logger.info("user updated", extra={"user_id": user_id, "fields": sorted(changes), "updated_by": admin.username})
    return UserRead.model_validate(user)


@router.post("/{user_id}/reset-password")
def reset_password(
    user_id: str,
    payload: PasswordResetRequest,
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_role("ADMIN")),
) -> dict[str, bool]:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    user.hashed_password = hash_password(payload.password, rounds=get_settings().password_hash_rounds)
    session.commit()
    logger.info("password reset", extra={"user_id": user_id, "reset_by": admin.username})
    return {"success": True}


__all__ = ["list_users", "reset_password", "router", "update_user"]
