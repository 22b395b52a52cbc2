from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.repo.battle_royale_participants_repo import BattleRoyaleParticipantsRepo
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.game.battle_royale import rounds
from app.game.battle_royale.errors import (
    BattleRoyaleSessionNotFoundError,
    InvalidSessionStateError,
    RoundConflictError,
)
from app.game.battle_royale.internal import (
    apply_participant_state,
    apply_session_snapshot,
    participant_to_state,
    session_to_snapshot,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.rules import BattleRoyaleRules, StateChange
from app.game.battle_royale.types import RoundOutcome, RoundResult, SessionSnapshot, SessionStatus

logger = structlog.get_logger(__name__)


async def _lock_session(session: AsyncSession, session_id: UUID) -> BattleRoyaleSession:
    battle = await BattleRoyaleSessionsRepo.get_by_id_for_update(session, session_id)
    if battle is None:
        raise BattleRoyaleSessionNotFoundError
    return battle


def _ensure_expected_round(snapshot: SessionSnapshot, expected_round: int | None) -> None:
    if expected_round is None:
        return
    if snapshot.status != SessionStatus.ACTIVE or snapshot.current_round != int(expected_round):
        raise RoundConflictError(
            f"session {snapshot.session_id} moved to round {snapshot.current_round} "
            f"({snapshot.status.value}), expected round {expected_round}"
        )


async def _skipped_result(
    session: AsyncSession,
    *,
    snapshot: SessionSnapshot,
) -> RoundResult:
    remaining = await BattleRoyaleParticipantsRepo.count_active_for_session(
        session,
        session_id=snapshot.session_id,
    )
    return RoundResult(
        session_id=snapshot.session_id,
        round_no=snapshot.current_round,
        eliminated=(),
        remaining=remaining,
        game_over=snapshot.status == SessionStatus.ENDED,
        winner_participant_id=snapshot.winner_participant_id,
        next_round=snapshot.current_round if snapshot.status == SessionStatus.ACTIVE else None,
        skipped=True,
    )


def _apply_touched(
    rows: Sequence[BattleRoyaleParticipant],
    touched: Sequence[ParticipantState],
) -> None:
    rows_by_id = {row.id: row for row in rows}
    for state in touched:
        apply_participant_state(rows_by_id[state.participant_id], state)


async def _persist_outcome(
    session: AsyncSession,
    *,
    battle: BattleRoyaleSession,
    snapshot: SessionSnapshot,
    rows: Sequence[BattleRoyaleParticipant],
    outcome: RoundOutcome,
) -> None:
    _apply_touched(rows, outcome.touched)
    apply_session_snapshot(battle, snapshot)
    await session.flush()


async def process_elimination_round(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
    rules: BattleRoyaleRules,
    expected_round: int | None = None,
) -> StateChange[RoundResult]:
    """Runs one elimination round under the session row lock.

    Ended sessions and rounds that already moved past ``expected_round`` yield a
    skipped result without notifications. A waiting session is rejected.
    Callers that can race pass the round they observed; ``None`` processes
    whatever round is current.
    """
    battle = await _lock_session(session, session_id)
    snapshot = session_to_snapshot(battle)

    if snapshot.status == SessionStatus.WAITING:
        raise InvalidSessionStateError(f"session {session_id} has not started")

    try:
        _ensure_expected_round(snapshot, expected_round)
    except RoundConflictError:
        logger.info(
            "battle_royale_round_skipped",
            session_id=str(session_id),
            reason="round_conflict",
            expected_round=expected_round,
            current_round=snapshot.current_round,
            session_status=snapshot.status.value,
        )
        return StateChange(
            session_id=session_id,
            value=await _skipped_result(session, snapshot=snapshot),
        )

    if snapshot.status == SessionStatus.ENDED:
        logger.warning(
            "battle_royale_round_skipped",
            session_id=str(session_id),
            reason="session_ended",
            current_round=snapshot.current_round,
        )
        return StateChange(
            session_id=session_id,
            value=await _skipped_result(session, snapshot=snapshot),
        )

    rows = await BattleRoyaleParticipantsRepo.list_active_for_session_for_update(
        session,
        session_id=session_id,
    )
    round_no = snapshot.current_round
    outcome = rounds.process_elimination_round(
        snapshot,
        [participant_to_state(row) for row in rows],
        policy=rules.policy,
        now_utc=now_utc,
    )
    await _persist_outcome(session, battle=battle, snapshot=snapshot, rows=rows, outcome=outcome)

    logger.info(
        "battle_royale_round_processed",
        session_id=str(session_id),
        round_no=round_no,
        policy=rules.policy.name,
        eliminated=len(outcome.result.eliminated),
        remaining=outcome.result.remaining,
        game_over=outcome.result.game_over,
    )
    invalidate_rounds = (round_no,)
    if not outcome.result.game_over:
        invalidate_rounds = (round_no, snapshot.current_round)
    return StateChange(
        session_id=session_id,
        value=outcome.result,
        notifications=outcome.notifications,
        invalidate_rounds=invalidate_rounds,
    )


async def check_automatic_eliminations(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
    rules: BattleRoyaleRules,
) -> StateChange[RoundResult]:
    battle = await _lock_session(session, session_id)
    snapshot = session_to_snapshot(battle)
    if snapshot.status != SessionStatus.ACTIVE:
        return StateChange(
            session_id=session_id,
            value=rounds.check_automatic_eliminations(
                snapshot,
                (),
                now_utc=now_utc,
                offline_timeout_seconds=rules.offline_timeout_seconds,
            ).result,
        )

    rows = await BattleRoyaleParticipantsRepo.list_active_for_session_for_update(
        session,
        session_id=session_id,
    )
    outcome = rounds.check_automatic_eliminations(
        snapshot,
        [participant_to_state(row) for row in rows],
        now_utc=now_utc,
        offline_timeout_seconds=rules.offline_timeout_seconds,
    )
    if not outcome.touched:
        return StateChange(session_id=session_id, value=outcome.result)

    await _persist_outcome(session, battle=battle, snapshot=snapshot, rows=rows, outcome=outcome)
    logger.info(
        "battle_royale_forced_eliminations",
        session_id=str(session_id),
        round_no=snapshot.current_round,
        eliminated=len(outcome.result.eliminated),
        remaining=outcome.result.remaining,
    )
    return StateChange(
        session_id=session_id,
        value=outcome.result,
        notifications=outcome.notifications,
        invalidate_rounds=(snapshot.current_round,),
    )


async def end_session(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
) -> StateChange[RoundResult]:
    """Closes an active session on the presenter's command.

    Survivors are placed 1..k in standings order and the leader wins. Ending
    an already ended session is a logged no-op.
    """
    battle = await _lock_session(session, session_id)
    snapshot = session_to_snapshot(battle)

    if snapshot.status == SessionStatus.WAITING:
        raise InvalidSessionStateError(f"session {session_id} has not started")
    if snapshot.status == SessionStatus.ENDED:
        logger.warning(
            "battle_royale_end_skipped",
            session_id=str(session_id),
            reason="session_ended",
        )
        return StateChange(
            session_id=session_id,
            value=await _skipped_result(session, snapshot=snapshot),
        )

    rows = await BattleRoyaleParticipantsRepo.list_active_for_session_for_update(
        session,
        session_id=session_id,
    )
    outcome = rounds.finish_session(
        snapshot,
        [participant_to_state(row) for row in rows],
        now_utc=now_utc,
    )
    await _persist_outcome(session, battle=battle, snapshot=snapshot, rows=rows, outcome=outcome)

    logger.info(
        "battle_royale_session_ended",
        session_id=str(session_id),
        round_no=snapshot.current_round,
        survivors=outcome.result.remaining,
        winner_participant_id=str(snapshot.winner_participant_id) if snapshot.winner_participant_id else None,
    )
    return StateChange(
        session_id=session_id,
        value=outcome.result,
        notifications=outcome.notifications,
        invalidate_rounds=(snapshot.current_round,),
    )
