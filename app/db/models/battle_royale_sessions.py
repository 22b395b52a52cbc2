from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class BattleRoyaleSession(Base):
    __tablename__ = "battle_royale_sessions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('WAITING','ACTIVE','ENDED')",
            name="ck_battle_royale_sessions_status",
        ),
        CheckConstraint(
            "max_participants >= 4 AND max_participants <= 100",
            name="ck_battle_royale_sessions_max_participants_range",
        ),
        CheckConstraint(
            "elimination_interval_seconds >= 10 AND elimination_interval_seconds <= 120",
            name="ck_battle_royale_sessions_elimination_interval_range",
        ),
        CheckConstraint(
            "current_round >= 0",
            name="ck_battle_royale_sessions_current_round_non_negative",
        ),
        Index("idx_battle_royale_sessions_status_round_deadline", "status", "round_deadline"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    elimination_interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    quiz_pool: Mapped[list[int]] = mapped_column(JSONB, nullable=False)
    created_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    winner_participant_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    round_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    round_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
