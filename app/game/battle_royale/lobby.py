from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.repo.battle_royale_participants_repo import BattleRoyaleParticipantsRepo
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.game.battle_royale import events
from app.game.battle_royale.constants import (
    AVATAR_STYLES,
    AVATAR_URL_TEMPLATE,
    BATTLE_ROYALE_MAX_ELIMINATION_INTERVAL_SECONDS,
    BATTLE_ROYALE_MAX_MAX_PARTICIPANTS,
    BATTLE_ROYALE_MIN_ELIMINATION_INTERVAL_SECONDS,
    BATTLE_ROYALE_MIN_MAX_PARTICIPANTS,
    BATTLE_ROYALE_MIN_PARTICIPANTS_TO_START,
    BATTLE_ROYALE_NICKNAME_MAX_LENGTH,
)
from app.game.battle_royale.errors import (
    BattleRoyaleSessionFullError,
    BattleRoyaleSessionNotFoundError,
    BattleRoyaleValidationError,
    InsufficientParticipantsError,
    InvalidSessionStateError,
    NicknameTakenError,
)
from app.game.battle_royale.internal import (
    apply_session_snapshot,
    participant_to_state,
    session_to_snapshot,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.rules import BattleRoyaleRules, StateChange
from app.game.battle_royale.types import SessionSnapshot, SessionStatus, can_transition

logger = structlog.get_logger(__name__)


def generate_avatar_url(rng: random.Random) -> str:
    return AVATAR_URL_TEMPLATE.format(
        style=rng.choice(AVATAR_STYLES),
        seed=f"{rng.getrandbits(40):010x}",
    )


def _validate_session_config(
    *,
    name: str,
    max_participants: int,
    elimination_interval_seconds: int,
    quiz_pool: Sequence[int],
) -> None:
    if not name.strip():
        raise BattleRoyaleValidationError("session name is required")
    if not BATTLE_ROYALE_MIN_MAX_PARTICIPANTS <= max_participants <= BATTLE_ROYALE_MAX_MAX_PARTICIPANTS:
        raise BattleRoyaleValidationError(f"max_participants out of range: {max_participants}")
    if not (
        BATTLE_ROYALE_MIN_ELIMINATION_INTERVAL_SECONDS
        <= elimination_interval_seconds
        <= BATTLE_ROYALE_MAX_ELIMINATION_INTERVAL_SECONDS
    ):
        raise BattleRoyaleValidationError(
            f"elimination_interval_seconds out of range: {elimination_interval_seconds}"
        )
    if not quiz_pool:
        raise BattleRoyaleValidationError("quiz pool is empty")


async def create_session(
    session: AsyncSession,
    *,
    name: str,
    max_participants: int,
    elimination_interval_seconds: int,
    quiz_pool: Sequence[int],
    now_utc: datetime,
    created_by: int | None = None,
) -> SessionSnapshot:
    _validate_session_config(
        name=name,
        max_participants=max_participants,
        elimination_interval_seconds=elimination_interval_seconds,
        quiz_pool=quiz_pool,
    )
    battle = await BattleRoyaleSessionsRepo.create(
        session,
        battle=BattleRoyaleSession(
            id=uuid4(),
            name=name.strip(),
            status=SessionStatus.WAITING.value,
            current_round=0,
            elimination_interval_seconds=int(elimination_interval_seconds),
            max_participants=int(max_participants),
            quiz_pool=[int(quiz_id) for quiz_id in quiz_pool],
            created_by=created_by,
            created_at=now_utc,
        ),
    )
    logger.info(
        "battle_royale_session_created",
        session_id=str(battle.id),
        max_participants=battle.max_participants,
        elimination_interval_seconds=battle.elimination_interval_seconds,
    )
    return session_to_snapshot(battle)


async def join_session(
    session: AsyncSession,
    *,
    session_id: UUID,
    nickname: str,
    now_utc: datetime,
    rules: BattleRoyaleRules,
    rng: random.Random,
    user_id: int | None = None,
    avatar_url: str | None = None,
) -> StateChange[ParticipantState]:
    resolved_nickname = nickname.strip()
    if not resolved_nickname or len(resolved_nickname) > BATTLE_ROYALE_NICKNAME_MAX_LENGTH:
        raise BattleRoyaleValidationError("nickname must be 1-50 characters")

    battle = await BattleRoyaleSessionsRepo.get_by_id_for_update(session, session_id)
    if battle is None:
        raise BattleRoyaleSessionNotFoundError
    if battle.status != SessionStatus.WAITING.value:
        raise InvalidSessionStateError(f"session {session_id} is not accepting participants")

    participants_total = await BattleRoyaleParticipantsRepo.count_for_session(
        session,
        session_id=session_id,
    )
    if participants_total >= battle.max_participants:
        raise BattleRoyaleSessionFullError
    if await BattleRoyaleParticipantsRepo.nickname_taken(
        session,
        session_id=session_id,
        nickname=resolved_nickname,
    ):
        raise NicknameTakenError

    participant = await BattleRoyaleParticipantsRepo.create(
        session,
        participant=BattleRoyaleParticipant(
            id=uuid4(),
            session_id=session_id,
            user_id=user_id,
            nickname=resolved_nickname,
            avatar_url=avatar_url or generate_avatar_url(rng),
            score=0,
            health=rules.health_ceiling,
            health_ceiling=rules.health_ceiling,
            streak=0,
            power_ups={},
            is_eliminated=False,
            is_online=True,
            last_seen_at=now_utc,
            last_activity_at=now_utc,
            joined_at=now_utc,
        ),
    )
    state = participant_to_state(participant)
    snapshot = session_to_snapshot(battle)
    return StateChange(
        session_id=session_id,
        value=state,
        notifications=[
            events.participant_joined(
                snapshot,
                state,
                participants_total=participants_total + 1,
                now_utc=now_utc,
            )
        ],
        invalidate_rounds=(snapshot.current_round,),
    )


async def start_session(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
) -> StateChange[SessionSnapshot]:
    battle = await BattleRoyaleSessionsRepo.get_by_id_for_update(session, session_id)
    if battle is None:
        raise BattleRoyaleSessionNotFoundError
    snapshot = session_to_snapshot(battle)
    if not can_transition(snapshot.status, SessionStatus.ACTIVE):
        raise InvalidSessionStateError(
            f"session {session_id} cannot start from {snapshot.status.value}"
        )

    participants_total = await BattleRoyaleParticipantsRepo.count_for_session(
        session,
        session_id=session_id,
    )
    if participants_total < BATTLE_ROYALE_MIN_PARTICIPANTS_TO_START:
        raise InsufficientParticipantsError

    snapshot.status = SessionStatus.ACTIVE
    snapshot.current_round = 1
    snapshot.started_at = now_utc
    snapshot.round_started_at = now_utc
    apply_session_snapshot(battle, snapshot)
    await session.flush()

    logger.info(
        "battle_royale_session_started",
        session_id=str(session_id),
        participants_total=participants_total,
    )
    return StateChange(
        session_id=session_id,
        value=snapshot,
        notifications=[
            events.session_started(
                snapshot,
                participants_total=participants_total,
                now_utc=now_utc,
            )
        ],
        invalidate_rounds=(0, snapshot.current_round),
    )
