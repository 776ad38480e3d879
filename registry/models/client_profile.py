"""Client profile ORM model."""
from __future__ import annotations

import uuid

from sqlalchemy import JSON, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from registry.models.base import Base, TimestampMixin


class ClientProfileRow(TimestampMixin, Base):
    """One client profile document.

    The full profile (names, address, bank, nominee, dividend and the
    ``companies`` holdings array) lives in ``document``. The scalar columns
    mirror the fields used for uniqueness, lookup and search and are rewritten
    together with the document on every insert or replace.
    """

    __tablename__ = "client_profiles"
    __table_args__ = (
        UniqueConstraint("client_id", name="uq_client_profiles_client_id"),
        Index("ix_client_profiles_pan_number", "pan_number"),
        Index("ix_client_profiles_shareholder_name", "shareholder_name"),
        Index("ix_client_profiles_status", "status"),
        Index("ix_client_profiles_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    pan_number: Mapped[str] = mapped_column(String(16), nullable=False)
    shareholder_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_names: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")
    email: Mapped[str | None] = mapped_column(String(320))
    document: Mapped[dict] = mapped_column(JSON, nullable=False)


__all__ = ["ClientProfileRow"]
