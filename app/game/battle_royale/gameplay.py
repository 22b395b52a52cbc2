from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.repo.battle_royale_participants_repo import BattleRoyaleParticipantsRepo
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.db.repo.quiz_questions_repo import QuizQuestionsRepo
from app.game.battle_royale.constants import HEALTH_BOOST_AMOUNT
from app.game.battle_royale.errors import (
    BattleRoyaleParticipantNotFoundError,
    BattleRoyaleQuestionNotFoundError,
    BattleRoyaleSessionNotFoundError,
    InvalidSessionStateError,
    PowerUpNotAvailableError,
)
from app.game.battle_royale.internal import (
    apply_participant_state,
    participant_to_state,
    question_to_snapshot,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.rules import BattleRoyaleRules, StateChange
from app.game.battle_royale.scoring import score_answer
from app.game.battle_royale.types import (
    NOT_COUNTED_SCORE,
    PowerUpActivationResult,
    PowerUpType,
    QuestionSnapshot,
    ScoreResult,
    SessionStatus,
)

logger = structlog.get_logger(__name__)


async def _load_session(session: AsyncSession, session_id: UUID) -> BattleRoyaleSession:
    battle = await BattleRoyaleSessionsRepo.get_by_id(session, session_id)
    if battle is None:
        raise BattleRoyaleSessionNotFoundError
    return battle


async def _load_participant_for_update(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: UUID,
) -> BattleRoyaleParticipant:
    participant = await BattleRoyaleParticipantsRepo.get_for_session_for_update(
        session,
        session_id=session_id,
        participant_id=participant_id,
    )
    if participant is None:
        raise BattleRoyaleParticipantNotFoundError
    return participant


async def _load_question(
    session: AsyncSession,
    *,
    battle: BattleRoyaleSession,
    question_id: str,
) -> QuestionSnapshot:
    question = await QuizQuestionsRepo.get_by_id(session, question_id)
    if question is None or int(question.quiz_id) not in {int(quiz_id) for quiz_id in battle.quiz_pool}:
        raise BattleRoyaleQuestionNotFoundError
    answers = await QuizQuestionsRepo.list_answers(session, question_id=question_id)
    return question_to_snapshot(question, answers)


async def submit_answer(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: UUID,
    question_id: str,
    answer_ids: Sequence[int],
    response_time_seconds: float,
    now_utc: datetime,
    rules: BattleRoyaleRules,
    rng: random.Random,
) -> StateChange[ScoreResult]:
    """Scores and applies one answer.

    The participant row stays locked until commit, so answers of the same
    participant are applied one at a time in arrival order.
    """
    battle = await _load_session(session, session_id)
    participant = await _load_participant_for_update(
        session,
        session_id=session_id,
        participant_id=participant_id,
    )
    question = await _load_question(session, battle=battle, question_id=question_id)

    state = participant_to_state(participant)
    if battle.status != SessionStatus.ACTIVE.value or state.is_pending_elimination:
        logger.info(
            "battle_royale_answer_not_counted",
            session_id=str(session_id),
            participant_id=str(participant_id),
            session_status=battle.status,
            is_eliminated=state.is_eliminated,
            health=state.health,
        )
        return StateChange(session_id=session_id, value=NOT_COUNTED_SCORE)

    result = score_answer(
        question,
        answer_ids,
        response_time_seconds,
        state,
        profile=rules.scoring_profile,
        rng=rng,
        drop_chance=rules.power_up_drop_chance,
        wrong_answer_damage=rules.wrong_answer_damage,
    )
    state.apply_score_result(result, at=now_utc)
    state.mark_online(now_utc)
    apply_participant_state(participant, state)
    await session.flush()

    return StateChange(
        session_id=session_id,
        value=result,
        invalidate_rounds=(int(battle.current_round),),
    )


def _apply_power_up_effect(
    state: ParticipantState,
    power_up: PowerUpType,
    *,
    now_utc: datetime,
) -> tuple[str, ...]:
    if power_up == PowerUpType.SHIELD:
        if state.shield is not None:
            raise PowerUpNotAvailableError("shield already active")
        state.use_power_up(power_up)
        state.activate_shield(now_utc)
        return ("Protected from next elimination",)
    if power_up == PowerUpType.HEALTH_BOOST:
        state.use_power_up(power_up)
        state.heal(HEALTH_BOOST_AMOUNT)
        return (f"Restored {HEALTH_BOOST_AMOUNT} health points",)
    if power_up == PowerUpType.TIME_FREEZE:
        state.use_power_up(power_up)
        return ("Extra time bonus for next question",)
    # double_points is spent by the next correct answer.
    return ("Next correct answer worth double points",)


async def activate_power_up(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: UUID,
    power_up: PowerUpType,
    now_utc: datetime,
) -> StateChange[PowerUpActivationResult]:
    battle = await _load_session(session, session_id)
    if battle.status != SessionStatus.ACTIVE.value:
        raise InvalidSessionStateError(f"session {session_id} is not active")
    participant = await _load_participant_for_update(
        session,
        session_id=session_id,
        participant_id=participant_id,
    )
    state = participant_to_state(participant)
    if state.is_pending_elimination or not state.has_power_up(power_up):
        raise PowerUpNotAvailableError(power_up.value)

    effects = _apply_power_up_effect(state, power_up, now_utc=now_utc)
    state.mark_online(now_utc)
    apply_participant_state(participant, state)
    await session.flush()

    logger.info(
        "battle_royale_power_up_activated",
        session_id=str(session_id),
        participant_id=str(participant_id),
        power_up=power_up.value,
    )
    return StateChange(
        session_id=session_id,
        value=PowerUpActivationResult(
            power_up=power_up,
            effects=effects,
            remaining=state.power_up_count(power_up),
        ),
        invalidate_rounds=(int(battle.current_round),),
    )


async def update_presence(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: UUID,
    is_online: bool,
    now_utc: datetime,
) -> StateChange[ParticipantState]:
    battle = await _load_session(session, session_id)
    participant = await _load_participant_for_update(
        session,
        session_id=session_id,
        participant_id=participant_id,
    )
    state = participant_to_state(participant)
    if is_online:
        state.mark_online(now_utc)
    else:
        state.mark_offline(now_utc)
    apply_participant_state(participant, state)
    await session.flush()
    return StateChange(
        session_id=session_id,
        value=state,
        invalidate_rounds=(int(battle.current_round),),
    )


async def pick_next_question_id(
    session: AsyncSession,
    *,
    session_id: UUID,
    rng: random.Random,
    exclude_question_ids: Sequence[str] | None = None,
) -> str | None:
    battle = await _load_session(session, session_id)
    question_ids = await QuizQuestionsRepo.list_question_ids_for_quizzes(
        session,
        quiz_ids=[int(quiz_id) for quiz_id in battle.quiz_pool],
        exclude_question_ids=exclude_question_ids,
    )
    if not question_ids:
        return None
    return rng.choice(question_ids)
