"""ORM models package."""
from .base import Base, TimestampMixin
from .client_profile import ClientProfileRow
from .user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "ClientProfileRow",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserStatus",
]
