from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.battle_royale_participants_repo import BattleRoyaleParticipantsRepo
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.game.battle_royale.errors import BattleRoyaleSessionNotFoundError
from app.game.battle_royale.internal import (
    participant_to_state,
    resolve_round_deadline,
    session_to_snapshot,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import SessionSnapshot, SessionStats, SessionStatus


async def get_session_snapshot(session: AsyncSession, *, session_id: UUID) -> SessionSnapshot:
    battle = await BattleRoyaleSessionsRepo.get_by_id(session, session_id)
    if battle is None:
        raise BattleRoyaleSessionNotFoundError
    return session_to_snapshot(battle)


async def list_participant_states(
    session: AsyncSession,
    *,
    session_id: UUID,
) -> list[ParticipantState]:
    rows = await BattleRoyaleParticipantsRepo.list_for_session(session, session_id=session_id)
    return [participant_to_state(row) for row in rows]


def elimination_countdown_seconds(snapshot: SessionSnapshot, *, now_utc: datetime) -> int:
    if snapshot.status != SessionStatus.ACTIVE:
        return 0
    deadline = resolve_round_deadline(snapshot)
    if deadline is None:
        return 0
    return max(0, int((deadline - now_utc).total_seconds()))


def build_session_stats(
    snapshot: SessionSnapshot,
    participants: Sequence[ParticipantState],
    *,
    now_utc: datetime,
) -> SessionStats:
    eliminated = [participant for participant in participants if participant.is_eliminated]
    eliminated_rounds = [int(participant.eliminated_round or 0) for participant in eliminated]
    total = len(participants)
    return SessionStats(
        session_id=snapshot.session_id,
        total_participants=total,
        eliminated_count=len(eliminated),
        active_count=total - len(eliminated),
        current_round=snapshot.current_round,
        elimination_rate=round(len(eliminated) / total * 100, 2) if total else 0.0,
        average_elimination_round=(
            round(sum(eliminated_rounds) / len(eliminated_rounds), 2) if eliminated_rounds else 0.0
        ),
        fastest_elimination_round=min(eliminated_rounds) if eliminated_rounds else 0,
        elimination_countdown_seconds=elimination_countdown_seconds(snapshot, now_utc=now_utc),
        round_duration_seconds=snapshot.elimination_interval_seconds,
    )


async def get_session_stats(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
) -> SessionStats:
    snapshot = await get_session_snapshot(session, session_id=session_id)
    participants = await list_participant_states(session, session_id=session_id)
    return build_session_stats(snapshot, participants, now_utc=now_utc)
