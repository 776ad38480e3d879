"""Client profiles and login accounts."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def upgrade() -> None:  # noqa: D401
    """Create the profile document table and the users table."""

    user_role = sa.Enum("ADMIN", "EMPLOYEE", "CLIENT", name="user_role")
    user_status = sa.Enum("ACTIVE", "DISABLED", name="user_status")

    user_role.create(op.get_bind(), checkfirst=True)
    user_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "client_profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("client_id", sa.String(length=64), nullable=False),
        sa.Column("pan_number", sa.String(length=16), nullable=False),
        sa.Column("shareholder_name", sa.String(length=255), nullable=False),
        sa.Column("company_names", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Active"),
        sa.Column("email", sa.String(length=320)),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("client_id", name="uq_client_profiles_client_id"),
    )
    op.create_index("ix_client_profiles_pan_number", "client_profiles", ["pan_number"])
    op.create_index("ix_client_profiles_shareholder_name", "client_profiles", ["shareholder_name"])
    op.create_index("ix_client_profiles_status", "client_profiles", ["status"])
    op.create_index("ix_client_profiles_created_at", "client_profiles", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("email", sa.String(length=320)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="CLIENT"),
        sa.Column("status", user_status, nullable=False, server_default="ACTIVE"),
        sa.Column("profile_id", sa.String(length=36)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_profile_id", "users", ["profile_id"])


def downgrade() -> None:  # noqa: D401
    """Drop the profile and account tables."""

    op.drop_index("ix_users_profile_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_client_profiles_created_at", table_name="client_profiles")
    op.drop_index("ix_client_profiles_status", table_name="client_profiles")
    op.drop_index("ix_client_profiles_shareholder_name", table_name="client_profiles")
    op.drop_index("ix_client_profiles_pan_number", table_name="client_profiles")
    op.drop_table("client_profiles")

    _drop_enum("user_status")
    _drop_enum("user_role")
