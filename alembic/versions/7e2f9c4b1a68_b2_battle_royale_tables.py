"""b2_battle_royale_tables

Revision ID: 7e2f9c4b1a68
Revises: 5b0e7a1c93d4
Create Date: 2026-10-18 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7e2f9c4b1a68"
down_revision: str | None = "5b0e7a1c93d4"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "battle_royale_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("elimination_interval_seconds", sa.Integer(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("quiz_pool", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_by", sa.BigInteger(), nullable=True),
        sa.Column("winner_participant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("round_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("round_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('WAITING','ACTIVE','ENDED')",
            name="ck_battle_royale_sessions_status",
        ),
        sa.CheckConstraint(
            "max_participants >= 4 AND max_participants <= 100",
            name="ck_battle_royale_sessions_max_participants_range",
        ),
        sa.CheckConstraint(
            "elimination_interval_seconds >= 10 AND elimination_interval_seconds <= 120",
            name="ck_battle_royale_sessions_elimination_interval_range",
        ),
        sa.CheckConstraint(
            "current_round >= 0",
            name="ck_battle_royale_sessions_current_round_non_negative",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_battle_royale_sessions_status_round_deadline",
        "battle_royale_sessions",
        ["status", "round_deadline"],
        unique=False,
    )

    op.create_table(
        "battle_royale_participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("nickname", sa.String(length=50), nullable=False),
        sa.Column("avatar_url", sa.String(length=256), nullable=True),
        sa.Column("score", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("health", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("health_ceiling", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "power_ups",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("shield_activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_eliminated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("eliminated_round", sa.Integer(), nullable=True),
        sa.Column("eliminated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_position", sa.Integer(), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("score >= 0", name="ck_battle_royale_participants_score_non_negative"),
        sa.CheckConstraint(
            "health >= 0 AND health <= health_ceiling",
            name="ck_battle_royale_participants_health_range",
        ),
        sa.CheckConstraint(
            "streak >= 0",
            name="ck_battle_royale_participants_streak_non_negative",
        ),
        sa.CheckConstraint(
            "(is_eliminated = false) OR (eliminated_round IS NOT NULL)",
            name="ck_battle_royale_participants_eliminated_round_set",
        ),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["battle_royale_sessions.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "session_id",
            "nickname",
            name="uq_battle_royale_participants_session_nickname",
        ),
        sa.UniqueConstraint(
            "session_id",
            "final_position",
            name="uq_battle_royale_participants_session_final_position",
        ),
    )
    op.create_index(
        "idx_battle_royale_participants_session_active_score",
        "battle_royale_participants",
        ["session_id", "is_eliminated", "score", "last_activity_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "idx_battle_royale_participants_session_active_score",
        table_name="battle_royale_participants",
    )
    op.drop_table("battle_royale_participants")
    op.drop_index(
        "idx_battle_royale_sessions_status_round_deadline",
        table_name="battle_royale_sessions",
    )
    op.drop_table("battle_royale_sessions")
