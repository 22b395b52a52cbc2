"""b1_quiz_bank_tables

Revision ID: 5b0e7a1c93d4
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "5b0e7a1c93d4"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "quiz_questions",
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("quiz_id", sa.BigInteger(), nullable=False),
        sa.Column("question_type", sa.String(length=16), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "question_type IN ('single_choice','multiple_choice')",
            name="ck_quiz_questions_question_type",
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE','DISABLED')",
            name="ck_quiz_questions_status",
        ),
        sa.PrimaryKeyConstraint("question_id"),
    )
    op.create_index(
        "idx_quiz_questions_quiz_status",
        "quiz_questions",
        ["quiz_id", "status"],
        unique=False,
    )

    op.create_table(
        "quiz_answers",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("position", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["quiz_questions.question_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_quiz_answers_question",
        "quiz_answers",
        ["question_id", "position"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_quiz_answers_question", table_name="quiz_answers")
    op.drop_table("quiz_answers")
    op.drop_index("idx_quiz_questions_quiz_status", table_name="quiz_questions")
    op.drop_table("quiz_questions")
