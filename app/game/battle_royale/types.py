from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from app.game.battle_royale.constants import (
    BATTLE_ROYALE_STATUS_ACTIVE,
    BATTLE_ROYALE_STATUS_ENDED,
    BATTLE_ROYALE_STATUS_WAITING,
)

if TYPE_CHECKING:
    from app.game.battle_royale.participant import ParticipantState


class SessionStatus(str, Enum):
    WAITING = BATTLE_ROYALE_STATUS_WAITING
    ACTIVE = BATTLE_ROYALE_STATUS_ACTIVE
    ENDED = BATTLE_ROYALE_STATUS_ENDED


_ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.WAITING: frozenset({SessionStatus.ACTIVE}),
    SessionStatus.ACTIVE: frozenset({SessionStatus.ENDED}),
    SessionStatus.ENDED: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in _ALLOWED_TRANSITIONS[current]


class PowerUpType(str, Enum):
    DOUBLE_POINTS = "double_points"
    SHIELD = "shield"
    TIME_FREEZE = "time_freeze"
    HEALTH_BOOST = "health_boost"


POWER_UP_DROP_POOL: tuple[PowerUpType, ...] = (
    PowerUpType.DOUBLE_POINTS,
    PowerUpType.SHIELD,
    PowerUpType.TIME_FREEZE,
    PowerUpType.HEALTH_BOOST,
)


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"


@dataclass(frozen=True, slots=True)
class QuestionSnapshot:
    question_id: str
    question_type: QuestionType
    answer_ids: tuple[int, ...]
    correct_answer_ids: frozenset[int]


@dataclass(frozen=True, slots=True)
class ShieldState:
    activated_at: datetime


@dataclass(slots=True)
class SessionSnapshot:
    session_id: UUID
    name: str
    status: SessionStatus
    current_round: int
    elimination_interval_seconds: int
    max_participants: int
    quiz_pool: tuple[int, ...]
    created_at: datetime
    created_by: int | None = None
    started_at: datetime | None = None
    round_started_at: datetime | None = None
    ended_at: datetime | None = None
    winner_participant_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    points: int
    is_correct: bool
    base_score: int
    multiplier: Decimal
    health_delta: int
    power_ups_granted: tuple[PowerUpType, ...] = ()
    power_ups_consumed: tuple[PowerUpType, ...] = ()
    counted: bool = True


NOT_COUNTED_SCORE = ScoreResult(
    points=0,
    is_correct=False,
    base_score=0,
    multiplier=Decimal("1"),
    health_delta=0,
    counted=False,
)


@dataclass(frozen=True, slots=True)
class EliminationDecision:
    count: int
    eliminated: tuple[ParticipantState, ...]
    shielded: tuple[ParticipantState, ...] = ()


@dataclass(frozen=True, slots=True)
class BattleRoyaleNotification:
    topic: str
    event: str
    payload: dict[str, object]


@dataclass(frozen=True, slots=True)
class EliminatedParticipantView:
    participant_id: UUID
    nickname: str
    score: int
    eliminated_round: int
    final_position: int | None


@dataclass(frozen=True, slots=True)
class RoundResult:
    session_id: UUID
    round_no: int
    eliminated: tuple[EliminatedParticipantView, ...]
    remaining: int
    game_over: bool
    winner_participant_id: UUID | None = None
    next_round: int | None = None
    skipped: bool = False


@dataclass(slots=True)
class RoundOutcome:
    result: RoundResult
    notifications: list[BattleRoyaleNotification] = field(default_factory=list)
    touched: list[ParticipantState] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ParticipantView:
    participant_id: UUID
    nickname: str
    avatar_url: str | None
    score: int
    streak: int
    health: int
    power_ups: dict[str, int]
    is_eliminated: bool
    eliminated_round: int | None
    final_position: int | None
    current_position: int
    is_online: bool


@dataclass(frozen=True, slots=True)
class PowerUpActivationResult:
    power_up: PowerUpType
    effects: tuple[str, ...]
    remaining: int


@dataclass(frozen=True, slots=True)
class SessionStats:
    session_id: UUID
    total_participants: int
    eliminated_count: int
    active_count: int
    current_round: int
    elimination_rate: float
    average_elimination_round: float
    fastest_elimination_round: int
    elimination_countdown_seconds: int
    round_duration_seconds: int
