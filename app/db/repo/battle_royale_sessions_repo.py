from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.battle_royale_sessions import BattleRoyaleSession


class BattleRoyaleSessionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, battle: BattleRoyaleSession) -> BattleRoyaleSession:
        session.add(battle)
        await session.flush()
        return battle

    @staticmethod
    async def get_by_id(session: AsyncSession, session_id: UUID) -> BattleRoyaleSession | None:
        return await session.get(BattleRoyaleSession, session_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        session_id: UUID,
    ) -> BattleRoyaleSession | None:
        stmt = (
            select(BattleRoyaleSession)
            .where(BattleRoyaleSession.id == session_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_due_round_deadline_ids(
        session: AsyncSession,
        *,
        now_utc: datetime,
        limit: int,
    ) -> list[tuple[UUID, int]]:
        resolved_limit = max(1, int(limit))
        stmt = (
            select(BattleRoyaleSession.id, BattleRoyaleSession.current_round)
            .where(
                BattleRoyaleSession.status == "ACTIVE",
                BattleRoyaleSession.round_deadline.is_not(None),
                BattleRoyaleSession.round_deadline <= now_utc,
            )
            .order_by(BattleRoyaleSession.round_deadline.asc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return [(row[0], int(row[1])) for row in result.all()]

    @staticmethod
    async def count_overdue_rounds(session: AsyncSession, *, deadline_before: datetime) -> int:
        stmt = select(func.count(BattleRoyaleSession.id)).where(
            BattleRoyaleSession.status == "ACTIVE",
            BattleRoyaleSession.round_deadline.is_not(None),
            BattleRoyaleSession.round_deadline < deadline_before,
        )
        return int(await session.scalar(stmt) or 0)
