"""Baseline: users, friendships, cooldowns, history

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the baseline tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("username", sa.String(length=16), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("push_subscription", sa.JSON(), nullable=True),
        sa.Column("muted_all", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "friendships",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("pair_key", sa.String(length=65), nullable=False),
        sa.Column("slot_a_user_id", sa.String(length=32), nullable=False),
        sa.Column("slot_b_user_id", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("slot_a_muted_peer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("slot_b_muted_peer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("slot_a_cooldown_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("slot_b_cooldown_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.ForeignKeyConstraint(["slot_a_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["slot_b_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pair_key"),
    )
    op.create_index("ix_friendships_slot_a_status", "friendships", ["slot_a_user_id", "status"], unique=False)
    op.create_index("ix_friendships_slot_b_status", "friendships", ["slot_b_user_id", "status"], unique=False)

    op.create_table(
        "cooldowns",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("initiator_id", sa.String(length=32), nullable=False),
        sa.Column("target_id", sa.String(length=32), nullable=False),
        sa.Column("triggered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["initiator_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_cooldowns_pair_expires", "cooldowns", ["initiator_id", "target_id", "expires_at"], unique=False
    )
    op.create_index("ix_cooldowns_expires_at", "cooldowns", ["expires_at"], unique=False)

    op.create_table(
        "history",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("sender_id", sa.String(length=32), nullable=False),
        sa.Column("receiver_id", sa.String(length=32), nullable=False),
        sa.Column("sender_username", sa.String(length=16), nullable=False),
        sa.Column("triggered_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_history_pair_triggered", "history", ["sender_id", "receiver_id", "triggered_at"], unique=False
    )


def downgrade() -> None:
    """Drop the baseline tables."""
    op.drop_index("ix_history_pair_triggered", table_name="history")
    op.drop_table("history")
    op.drop_index("ix_cooldowns_expires_at", table_name="cooldowns")
    op.drop_index("ix_cooldowns_pair_expires", table_name="cooldowns")
    op.drop_table("cooldowns")
    op.drop_index("ix_friendships_slot_b_status", table_name="friendships")
    op.drop_index("ix_friendships_slot_a_status", table_name="friendships")
    op.drop_table("friendships")
    op.drop_table("users")
