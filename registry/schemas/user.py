"""Pydantic schemas for login accounts."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from registry.models.user import UserRole, UserStatus


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: UserRole
    status: UserStatus
    profile_id: str | None = None
    created_at: datetime


class UserList(BaseModel):
    data: list[UserRead]


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    email_or_username: str | None = Field(default=None, alias="emailOrUsername")
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _require_identifier(self) -> "LoginRequest":
        if not (self.username or self.email or self.email_or_username):
            raise ValueError("username, email or emailOrUsername is required")
        return self

    @property
    def identifier(self) -> str:
        return self.email_or_username or self.username or self.email or ""


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


class PasswordChangeRequest(BaseModel):
    new_password: str = Field(..., min_length=8, alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class PasswordResetRequest(BaseModel):
    password: str = Field(..., min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Email required")
        return value


class UserUpdate(BaseModel):
    """Admin edit of an account; only the fields sent are changed."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=32)
    role: UserRole | None = None
    status: UserStatus | None = None

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower() or None

    @field_validator("role", "status", mode="before")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("must not be null")
        return value


__all__ = [
    "ForgotPasswordRequest",
    "LoginRequest",
    "PasswordChangeRequest",
    "PasswordResetRequest",
    "TokenResponse",
    "UserList",
    "UserRead",
    "UserUpdate",
]
