"""Initial identity schema: workspaces and users

Learn: The two UNIQUE indexes (users.email, workspaces.name) are what
actually keep signups consistent under concurrency. The service's
"does it exist?" lookups are only there for friendlier errors.

workspaces.owner_id has no foreign key: a workspace is created before its
first user, and 0 marks "no owner yet".

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "workspaces",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("owner_id", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("name", name="workspaces_name_key"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            "ws_id",
            sa.BigInteger(),
            sa.ForeignKey("workspaces.id"),
            nullable=False,
        ),
        sa.Column("fullname", sa.String(64), nullable=False),
        sa.Column("email", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("email", name="users_email_key"),
    )
    op.create_index("ix_users_ws_id", "users", ["ws_id"])


def downgrade() -> None:
    op.drop_index("ix_users_ws_id", table_name="users")
    op.drop_table("users")
    op.drop_table("workspaces")
