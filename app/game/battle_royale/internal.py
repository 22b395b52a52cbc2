from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.models.quiz_answers import QuizAnswer
from app.db.models.quiz_questions import QuizQuestion
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import (
    PowerUpType,
    QuestionSnapshot,
    QuestionType,
    SessionSnapshot,
    SessionStatus,
    ShieldState,
)


def session_to_snapshot(battle: BattleRoyaleSession) -> SessionSnapshot:
    return SessionSnapshot(
        session_id=battle.id,
        name=battle.name,
        status=SessionStatus(battle.status),
        current_round=int(battle.current_round),
        elimination_interval_seconds=int(battle.elimination_interval_seconds),
        max_participants=int(battle.max_participants),
        quiz_pool=tuple(int(quiz_id) for quiz_id in battle.quiz_pool or ()),
        created_at=battle.created_at,
        created_by=battle.created_by,
        started_at=battle.started_at,
        round_started_at=battle.round_started_at,
        ended_at=battle.ended_at,
        winner_participant_id=battle.winner_participant_id,
    )


def resolve_round_deadline(snapshot: SessionSnapshot) -> datetime | None:
    if snapshot.status != SessionStatus.ACTIVE or snapshot.round_started_at is None:
        return None
    return snapshot.round_started_at + timedelta(seconds=snapshot.elimination_interval_seconds)


def apply_session_snapshot(battle: BattleRoyaleSession, snapshot: SessionSnapshot) -> None:
    battle.status = snapshot.status.value
    battle.current_round = snapshot.current_round
    battle.started_at = snapshot.started_at
    battle.round_started_at = snapshot.round_started_at
    battle.round_deadline = resolve_round_deadline(snapshot)
    battle.ended_at = snapshot.ended_at
    battle.winner_participant_id = snapshot.winner_participant_id


def _power_ups_from_model(raw: dict[str, int] | None) -> dict[PowerUpType, int]:
    power_ups: dict[PowerUpType, int] = {}
    for key, count in (raw or {}).items():
        try:
            power_up = PowerUpType(key)
        except ValueError:
            continue
        if int(count) > 0:
            power_ups[power_up] = int(count)
    return power_ups


def participant_to_state(participant: BattleRoyaleParticipant) -> ParticipantState:
    shield = None
    if participant.shield_activated_at is not None:
        shield = ShieldState(activated_at=participant.shield_activated_at)
    return ParticipantState(
        participant_id=participant.id,
        session_id=participant.session_id,
        nickname=participant.nickname,
        joined_at=participant.joined_at,
        last_activity_at=participant.last_activity_at,
        user_id=participant.user_id,
        avatar_url=participant.avatar_url,
        score=int(participant.score),
        health=int(participant.health),
        health_ceiling=int(participant.health_ceiling),
        streak=int(participant.streak),
        power_ups=_power_ups_from_model(participant.power_ups),
        shield=shield,
        is_eliminated=bool(participant.is_eliminated),
        eliminated_round=participant.eliminated_round,
        eliminated_at=participant.eliminated_at,
        final_position=participant.final_position,
        is_online=bool(participant.is_online),
        last_seen_at=participant.last_seen_at,
    )


def apply_participant_state(participant: BattleRoyaleParticipant, state: ParticipantState) -> None:
    participant.score = state.score
    participant.health = state.health
    participant.streak = state.streak
    participant.power_ups = {
        power_up.value: count for power_up, count in state.power_ups.items() if count > 0
    }
    participant.shield_activated_at = state.shield.activated_at if state.shield else None
    participant.is_eliminated = state.is_eliminated
    participant.eliminated_round = state.eliminated_round
    participant.eliminated_at = state.eliminated_at
    participant.final_position = state.final_position
    participant.is_online = state.is_online
    participant.last_seen_at = state.last_seen_at
    participant.last_activity_at = state.last_activity_at


def question_to_snapshot(question: QuizQuestion, answers: Sequence[QuizAnswer]) -> QuestionSnapshot:
    return QuestionSnapshot(
        question_id=question.question_id,
        question_type=QuestionType(question.question_type),
        answer_ids=tuple(int(answer.id) for answer in answers),
        correct_answer_ids=frozenset(int(answer.id) for answer in answers if answer.is_correct),
    )
