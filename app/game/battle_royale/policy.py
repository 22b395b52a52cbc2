from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from app.game.battle_royale.constants import (
    ELIMINATION_POLICY_HEALTH_BLENDED,
    ELIMINATION_POLICY_TIERED,
    HEALTH_BLENDED_ENDGAME_RATE,
    HEALTH_BLENDED_HEALTH_WEIGHT,
    TIERED_ELIMINATION_RATES,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import EliminationDecision


def _tie_break_tail(participant: ParticipantState) -> tuple[object, ...]:
    return (
        participant.last_activity_at,
        participant.joined_at,
        str(participant.participant_id),
    )


def _rate_count(total_active: int, rate: Decimal) -> int:
    return max(1, math.floor(total_active * rate))


def _tiered_rate(total_active: int) -> Decimal | None:
    for min_population, rate in TIERED_ELIMINATION_RATES:
        if total_active >= min_population:
            return rate
    return None


@dataclass(frozen=True, slots=True)
class TieredEliminationPolicy:
    """Population-tiered cut: 30% above 16, 25% above 8, 20% from 4 on.

    Three players lose exactly one, two players play on without a cut.
    Worst performers are the lowest scores; on equal scores the one whose
    last activity is oldest goes first.
    """

    name: str = ELIMINATION_POLICY_TIERED

    def elimination_count(self, total_active: int) -> int:
        if total_active <= 2:
            return 0
        if total_active == 3:
            return 1
        rate = _tiered_rate(total_active)
        if rate is None:
            return 0
        return _rate_count(total_active, rate)

    def rank_worst_first(self, participants: Sequence[ParticipantState]) -> list[ParticipantState]:
        return sorted(
            participants,
            key=lambda participant: (participant.score, *_tie_break_tail(participant)),
        )


@dataclass(frozen=True, slots=True)
class HealthBlendedEliminationPolicy:
    """Alternative cut ranking by ``score + 10 * health``.

    Uses the same percentage tiers above four players and a flat 25% below,
    which always removes one player while at least two remain.
    """

    name: str = ELIMINATION_POLICY_HEALTH_BLENDED

    def elimination_count(self, total_active: int) -> int:
        if total_active <= 1:
            return 0
        if total_active <= 4:
            return _rate_count(total_active, HEALTH_BLENDED_ENDGAME_RATE)
        rate = _tiered_rate(total_active)
        if rate is None:
            return 0
        return _rate_count(total_active, rate)

    def rank_worst_first(self, participants: Sequence[ParticipantState]) -> list[ParticipantState]:
        return sorted(
            participants,
            key=lambda participant: (
                participant.score + participant.health * HEALTH_BLENDED_HEALTH_WEIGHT,
                *_tie_break_tail(participant),
            ),
        )


EliminationPolicy = TieredEliminationPolicy | HealthBlendedEliminationPolicy

_POLICIES: dict[str, EliminationPolicy] = {
    ELIMINATION_POLICY_TIERED: TieredEliminationPolicy(),
    ELIMINATION_POLICY_HEALTH_BLENDED: HealthBlendedEliminationPolicy(),
}


def get_elimination_policy(name: str) -> EliminationPolicy:
    try:
        return _POLICIES[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown elimination policy: {name!r}") from exc


def select_for_elimination(
    participants: Sequence[ParticipantState],
    *,
    policy: EliminationPolicy,
) -> EliminationDecision:
    active = [participant for participant in participants if participant.is_active]
    count = policy.elimination_count(len(active))
    if count <= 0:
        return EliminationDecision(count=0, eliminated=())

    eliminated: list[ParticipantState] = []
    shielded: list[ParticipantState] = []
    for participant in policy.rank_worst_first(active):
        if len(eliminated) >= count:
            break
        if participant.shield is not None:
            shielded.append(participant)
            continue
        eliminated.append(participant)

    return EliminationDecision(count=count, eliminated=tuple(eliminated), shielded=tuple(shielded))
