from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import (
    QuestionSnapshot,
    QuestionType,
    SessionSnapshot,
    SessionStatus,
)

UTC = timezone.utc
NOW_UTC = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
SESSION_ID = UUID("00000000-0000-4000-8000-0000000000aa")


def _participant(
    nickname: str,
    *,
    score: int = 0,
    health: int = 100,
    streak: int = 0,
    activity_offset_seconds: int = 0,
    joined_offset_seconds: int = 0,
    participant_id: UUID | None = None,
) -> ParticipantState:
    joined_at = NOW_UTC - timedelta(minutes=10) + timedelta(seconds=joined_offset_seconds)
    return ParticipantState(
        participant_id=participant_id or uuid4(),
        session_id=SESSION_ID,
        nickname=nickname,
        joined_at=joined_at,
        last_activity_at=NOW_UTC - timedelta(minutes=5) + timedelta(seconds=activity_offset_seconds),
        score=score,
        health=health,
        streak=streak,
        last_seen_at=NOW_UTC,
    )


def _ranked_field(total: int) -> list[ParticipantState]:
    return [_participant(f"player-{index:02d}", score=index * 100) for index in range(1, total + 1)]


def _session(
    *,
    status: SessionStatus = SessionStatus.ACTIVE,
    current_round: int = 1,
    elimination_interval_seconds: int = 30,
) -> SessionSnapshot:
    return SessionSnapshot(
        session_id=SESSION_ID,
        name="Friday Finals",
        status=status,
        current_round=current_round,
        elimination_interval_seconds=elimination_interval_seconds,
        max_participants=100,
        quiz_pool=(7,),
        created_at=NOW_UTC - timedelta(hours=1),
        started_at=NOW_UTC - timedelta(minutes=10) if status != SessionStatus.WAITING else None,
        round_started_at=NOW_UTC - timedelta(seconds=elimination_interval_seconds)
        if status == SessionStatus.ACTIVE
        else None,
    )


def _single_choice(correct_answer_id: int = 2) -> QuestionSnapshot:
    return QuestionSnapshot(
        question_id="q-1",
        question_type=QuestionType.SINGLE_CHOICE,
        answer_ids=(1, 2, 3, 4),
        correct_answer_ids=frozenset({correct_answer_id}),
    )


def _multiple_choice(correct_answer_ids: set[int]) -> QuestionSnapshot:
    return QuestionSnapshot(
        question_id="q-2",
        question_type=QuestionType.MULTIPLE_CHOICE,
        answer_ids=(1, 2, 3, 4),
        correct_answer_ids=frozenset(correct_answer_ids),
    )
