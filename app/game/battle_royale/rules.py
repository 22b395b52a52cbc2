from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar
from uuid import UUID

from app.core.config import Settings
from app.game.battle_royale.constants import (
    HEALTH_CEILING,
    OFFLINE_TIMEOUT_SECONDS,
    POWER_UP_DROP_CHANCE,
    WRONG_ANSWER_DAMAGE,
)
from app.game.battle_royale.policy import (
    EliminationPolicy,
    TieredEliminationPolicy,
    get_elimination_policy,
)
from app.game.battle_royale.scoring import STANDARD_PROFILE, ScoringProfile, get_scoring_profile
from app.game.battle_royale.types import BattleRoyaleNotification

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class BattleRoyaleRules:
    policy: EliminationPolicy = field(default_factory=TieredEliminationPolicy)
    scoring_profile: ScoringProfile = STANDARD_PROFILE
    health_ceiling: int = HEALTH_CEILING
    wrong_answer_damage: int = WRONG_ANSWER_DAMAGE
    power_up_drop_chance: float = POWER_UP_DROP_CHANCE
    offline_timeout_seconds: int = OFFLINE_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings: Settings) -> BattleRoyaleRules:
        return cls(
            policy=get_elimination_policy(settings.battle_royale_elimination_policy),
            scoring_profile=get_scoring_profile(settings.battle_royale_scoring_profile),
            health_ceiling=settings.battle_royale_health_ceiling,
            wrong_answer_damage=settings.battle_royale_wrong_answer_damage,
            power_up_drop_chance=settings.battle_royale_power_up_drop_chance,
            offline_timeout_seconds=settings.battle_royale_offline_timeout_seconds,
        )


@dataclass(slots=True)
class StateChange(Generic[T]):
    """Value of a committed operation plus what to do once it is durable."""

    session_id: UUID
    value: T
    notifications: list[BattleRoyaleNotification] = field(default_factory=list)
    invalidate_rounds: tuple[int, ...] = ()
