"""initial_schema

Revision ID: 3f1a9c27b0e4
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the ``users`` table (email/password accounts) and the ``documents``
table backing the hierarchical farm document store, plus the ``user_role``
enum type.  Enables uuid-ossp for server-side UUID defaults.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1a9c27b0e4"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_USER_ROLE = postgresql.ENUM(
    "admin", "manager", "worker", "viewer", name="user_role", create_type=False
)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    ENUM_USER_ROLE.create(op.get_bind(), checkfirst=True)

    # ── users ───────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column(
            "role",
            ENUM_USER_ROLE,
            server_default="worker",
            nullable=False,
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── documents ───────────────────────────────────────────────────────
    op.create_table(
        "documents",
        sa.Column("path", sa.String(1024), nullable=False),
        sa.Column("collection", sa.String(1024), nullable=False),
        sa.Column("doc_id", sa.String(255), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("path"),
    )
    op.create_index("ix_documents_collection", "documents", ["collection"])
    op.create_index(
        "ix_documents_data_gin", "documents", ["data"], postgresql_using="gin"
    )


def downgrade() -> None:
    op.drop_index("ix_documents_data_gin", table_name="documents")
    op.drop_index("ix_documents_collection", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    ENUM_USER_ROLE.drop(op.get_bind(), checkfirst=True)
