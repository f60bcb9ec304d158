"""initial schema

Revision ID: 3c1f2a9d7b10
Revises:
Create Date: 2026-10-16 09:12:41.204518

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create deployment, user session and nonce tables."""
    op.create_table(
        "deployments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("token_address", sa.String(length=42), nullable=False),
        sa.Column("deployed_by", sa.String(length=42), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("token_config", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deployments_deployed_by", "deployments", ["deployed_by"])
    op.create_index("ix_deployments_status", "deployments", ["status"])

    op.create_table(
        "user_sessions",
        sa.Column("user_address", sa.String(length=42), nullable=False),
        sa.Column("last_known_balance", sa.Text(), nullable=True),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deployment_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("user_address"),
    )
    op.create_index("ix_user_sessions_last_verified_at", "user_sessions", ["last_verified_at"])

    op.create_table(
        "used_nonce",
        sa.Column("nonce", sa.Text(), nullable=False),
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("nonce"),
    )
    op.create_index("ix_used_nonce_issued_at", "used_nonce", ["issued_at"])


def downgrade() -> None:
    """Drop all launcher tables."""
    op.drop_index("ix_used_nonce_issued_at", table_name="used_nonce")
    op.drop_table("used_nonce")
    op.drop_index("ix_user_sessions_last_verified_at", table_name="user_sessions")
    op.drop_table("user_sessions")
    op.drop_index("ix_deployments_status", table_name="deployments")
    op.drop_index("ix_deployments_deployed_by", table_name="deployments")
    op.drop_table("deployments")
