from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.battle_royale_participants import BattleRoyaleParticipant


class BattleRoyaleParticipantsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        participant: BattleRoyaleParticipant,
    ) -> BattleRoyaleParticipant:
        session.add(participant)
        await session.flush()
        return participant

    @staticmethod
    async def get_for_session(
        session: AsyncSession,
        *,
        session_id: UUID,
        participant_id: UUID,
    ) -> BattleRoyaleParticipant | None:
        stmt = select(BattleRoyaleParticipant).where(
            BattleRoyaleParticipant.id == participant_id,
            BattleRoyaleParticipant.session_id == session_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_session_for_update(
        session: AsyncSession,
        *,
        session_id: UUID,
        participant_id: UUID,
    ) -> BattleRoyaleParticipant | None:
        stmt = (
            select(BattleRoyaleParticipant)
            .where(
                BattleRoyaleParticipant.id == participant_id,
                BattleRoyaleParticipant.session_id == session_id,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_for_session(session: AsyncSession, *, session_id: UUID) -> int:
        stmt = select(func.count(BattleRoyaleParticipant.id)).where(
            BattleRoyaleParticipant.session_id == session_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def nickname_taken(session: AsyncSession, *, session_id: UUID, nickname: str) -> bool:
        stmt = select(BattleRoyaleParticipant.id).where(
            BattleRoyaleParticipant.session_id == session_id,
            func.lower(BattleRoyaleParticipant.nickname) == nickname.lower(),
        )
        result = await session.execute(stmt)
        return result.first() is not None

    @staticmethod
    async def list_for_session(
        session: AsyncSession,
        *,
        session_id: UUID,
    ) -> list[BattleRoyaleParticipant]:
        stmt = (
            select(BattleRoyaleParticipant)
            .where(BattleRoyaleParticipant.session_id == session_id)
            .order_by(BattleRoyaleParticipant.joined_at.asc(), BattleRoyaleParticipant.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_active_for_session_for_update(
        session: AsyncSession,
        *,
        session_id: UUID,
    ) -> list[BattleRoyaleParticipant]:
        stmt = (
            select(BattleRoyaleParticipant)
            .where(
                BattleRoyaleParticipant.session_id == session_id,
                BattleRoyaleParticipant.is_eliminated.is_(False),
            )
            .order_by(
                BattleRoyaleParticipant.score.asc(),
                BattleRoyaleParticipant.last_activity_at.asc(),
                BattleRoyaleParticipant.joined_at.asc(),
                BattleRoyaleParticipant.id.asc(),
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_active_for_session(session: AsyncSession, *, session_id: UUID) -> int:
        stmt = select(func.count(BattleRoyaleParticipant.id)).where(
            BattleRoyaleParticipant.session_id == session_id,
            BattleRoyaleParticipant.is_eliminated.is_(False),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
