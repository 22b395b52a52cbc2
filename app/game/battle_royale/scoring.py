from __future__ import annotations

import math
import random
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from app.game.battle_royale.constants import (
    CORRECT_ANSWER_HEALTH_GAIN_CAP,
    DOUBLE_POINTS_FACTOR,
    HEALTH_GAIN_POINTS_PER_HP,
    POWER_UP_DROP_CHANCE,
    SCORING_PROFILE_ARENA,
    SCORING_PROFILE_STANDARD,
    STREAK_BONUS_OFFSET,
    STREAK_BONUS_PER_STEP,
    STREAK_BONUS_THRESHOLD,
    TIME_FREEZE_BONUS,
    TIME_FREEZE_FAST_ANSWER_SECONDS,
    WRONG_ANSWER_DAMAGE,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import (
    POWER_UP_DROP_POOL,
    PowerUpType,
    QuestionSnapshot,
    QuestionType,
    ScoreResult,
)


@dataclass(frozen=True, slots=True)
class ScoringProfile:
    code: str
    base_score: int
    grace_seconds: float
    penalty_points_per_second: int
    minimum_score: int
    survival_bonus_healthy: int = 0
    survival_bonus_wounded: int = 0
    survival_health_threshold: int = 50


STANDARD_PROFILE = ScoringProfile(
    code=SCORING_PROFILE_STANDARD,
    base_score=3000,
    grace_seconds=5.0,
    penalty_points_per_second=100,
    minimum_score=100,
)
ARENA_PROFILE = ScoringProfile(
    code=SCORING_PROFILE_ARENA,
    base_score=5000,
    grace_seconds=0.0,
    penalty_points_per_second=15,
    minimum_score=100,
    survival_bonus_healthy=1000,
    survival_bonus_wounded=500,
)

_PROFILES = {profile.code: profile for profile in (STANDARD_PROFILE, ARENA_PROFILE)}


def get_scoring_profile(code: str) -> ScoringProfile:
    try:
        return _PROFILES[code.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown scoring profile: {code!r}") from exc


def is_answer_correct(question: QuestionSnapshot, selected_answer_ids: Iterable[int]) -> bool:
    selected = list(selected_answer_ids)
    correct = question.correct_answer_ids
    if not selected or not correct:
        return False
    if question.question_type == QuestionType.SINGLE_CHOICE:
        return len(selected) == 1 and selected[0] in correct
    return frozenset(selected) == correct


def base_points(
    response_time_seconds: float,
    profile: ScoringProfile = STANDARD_PROFILE,
    *,
    bonus: int = 0,
) -> int:
    """Base score of a correct answer after the response-time penalty."""
    elapsed = max(0.0, float(response_time_seconds))
    overtime = max(0.0, elapsed - profile.grace_seconds)
    penalty = int(overtime * profile.penalty_points_per_second)
    return max(profile.minimum_score, profile.base_score - penalty + bonus)


def survival_bonus(health: int, profile: ScoringProfile = STANDARD_PROFILE) -> int:
    if health > profile.survival_health_threshold:
        return profile.survival_bonus_healthy
    return profile.survival_bonus_wounded


def streak_multiplier(streak: int) -> Decimal:
    if streak < STREAK_BONUS_THRESHOLD:
        return Decimal("1")
    return Decimal("1") + STREAK_BONUS_PER_STEP * (streak - STREAK_BONUS_OFFSET)


def _roll_power_up_drop(rng: random.Random, *, drop_chance: float) -> tuple[PowerUpType, ...]:
    if rng.random() >= drop_chance:
        return ()
    return (rng.choice(POWER_UP_DROP_POOL),)


def score_answer(
    question: QuestionSnapshot,
    selected_answer_ids: Iterable[int],
    response_time_seconds: float,
    participant: ParticipantState,
    *,
    profile: ScoringProfile = STANDARD_PROFILE,
    rng: random.Random | None = None,
    drop_chance: float = POWER_UP_DROP_CHANCE,
    wrong_answer_damage: int = WRONG_ANSWER_DAMAGE,
) -> ScoreResult:
    """Scores one Battle Royale answer without touching the participant.

    The streak bonus uses the streak before this answer is counted.
    ``time_freeze`` is only read here; consuming it is an explicit
    activation by the participant.
    """
    if not is_answer_correct(question, selected_answer_ids):
        return ScoreResult(
            points=0,
            is_correct=False,
            base_score=0,
            multiplier=Decimal("1"),
            health_delta=-wrong_answer_damage,
        )

    base_score = base_points(
        response_time_seconds,
        profile,
        bonus=survival_bonus(participant.health, profile),
    )
    multiplier = streak_multiplier(participant.streak)
    consumed: list[PowerUpType] = []

    if participant.has_power_up(PowerUpType.DOUBLE_POINTS):
        multiplier *= DOUBLE_POINTS_FACTOR
        consumed.append(PowerUpType.DOUBLE_POINTS)

    if (
        participant.has_power_up(PowerUpType.TIME_FREEZE)
        and response_time_seconds < TIME_FREEZE_FAST_ANSWER_SECONDS
    ):
        multiplier += TIME_FREEZE_BONUS

    resolved_rng = rng if rng is not None else random.Random()
    return ScoreResult(
        points=math.floor(base_score * multiplier),
        is_correct=True,
        base_score=base_score,
        multiplier=multiplier,
        health_delta=min(CORRECT_ANSWER_HEALTH_GAIN_CAP, base_score // HEALTH_GAIN_POINTS_PER_HP),
        power_ups_granted=_roll_power_up_drop(resolved_rng, drop_chance=drop_chance),
        power_ups_consumed=tuple(consumed),
    )
