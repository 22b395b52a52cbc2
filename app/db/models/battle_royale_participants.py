from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class BattleRoyaleParticipant(Base):
    __tablename__ = "battle_royale_participants"
    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_battle_royale_participants_score_non_negative"),
        CheckConstraint(
            "health >= 0 AND health <= health_ceiling",
            name="ck_battle_royale_participants_health_range",
        ),
        CheckConstraint("streak >= 0", name="ck_battle_royale_participants_streak_non_negative"),
        CheckConstraint(
            "(is_eliminated = false) OR (eliminated_round IS NOT NULL)",
            name="ck_battle_royale_participants_eliminated_round_set",
        ),
        UniqueConstraint(
            "session_id",
            "nickname",
            name="uq_battle_royale_participants_session_nickname",
        ),
        UniqueConstraint(
            "session_id",
            "final_position",
            name="uq_battle_royale_participants_session_final_position",
        ),
        Index(
            "idx_battle_royale_participants_session_active_score",
            "session_id",
            "is_eliminated",
            "score",
            "last_activity_at",
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    session_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("battle_royale_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    nickname: Mapped[str] = mapped_column(String(50), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    health: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    health_ceiling: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    power_ups: Mapped[dict[str, int]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    shield_activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_eliminated: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    eliminated_round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    eliminated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    final_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
