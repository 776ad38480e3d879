"""Pydantic schemas package."""

from .profile import (
    ClientProfileInput,
    ClientProfilePage,
    ClientProfileRead,
    HoldingKey,
    ReviewRequest,
    ReviewStats,
    ReviewStatus,
    ShareHolding,
)
from .user import (
    LoginRequest,
    PasswordChangeRequest,
    PasswordResetRequest,
    TokenResponse,
    UserList,
    UserRead,
)

__all__ = [
    "ClientProfileInput",
    "ClientProfilePage",
    "ClientProfileRead",
    "HoldingKey",
    "LoginRequest",
    "PasswordChangeRequest",
    "PasswordResetRequest",
    "ReviewRequest",
    "ReviewStats",
    "ReviewStatus",
    "ShareHolding",
    "TokenResponse",
    "UserList",
    "UserRead",
]
