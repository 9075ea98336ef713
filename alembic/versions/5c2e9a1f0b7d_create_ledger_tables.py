"""Create point_transactions and users tables

Revision ID: 5c2e9a1f0b7d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e9a1f0b7d"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the Transaction Log and the Aggregate Store."""
    op.create_table(
        "point_transactions",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("sender_id", sa.String(64), nullable=False),
        sa.Column("reciever_id", sa.String(64), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_point_transactions_created_at", "point_transactions", ["created_at"]
    )
    op.create_index(
        "ix_point_transactions_reciever", "point_transactions", ["reciever_id"]
    )

    op.create_table(
        "users",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_users_points_desc", "users", ["points"])


def downgrade() -> None:
    op.drop_index("ix_users_points_desc", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_point_transactions_reciever", table_name="point_transactions")
    op.drop_index("ix_point_transactions_created_at", table_name="point_transactions")
    op.drop_table("point_transactions")
