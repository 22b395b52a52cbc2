from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from app.game.battle_royale.constants import HEALTH_CEILING
from app.game.battle_royale.types import PowerUpType, ScoreResult, ShieldState


@dataclass(slots=True, eq=False)
class ParticipantState:
    """Mutable gameplay state of one participant inside a session.

    Every mutator is a no-op once the participant is eliminated, so the
    final state stays frozen for leaderboards and history. A participant at
    0 health is awaiting forced elimination and can neither heal nor score.
    """

    participant_id: UUID
    session_id: UUID
    nickname: str
    joined_at: datetime
    last_activity_at: datetime
    user_id: int | None = None
    avatar_url: str | None = None
    score: int = 0
    health: int = HEALTH_CEILING
    health_ceiling: int = HEALTH_CEILING
    streak: int = 0
    power_ups: dict[PowerUpType, int] = field(default_factory=dict)
    shield: ShieldState | None = None
    is_eliminated: bool = False
    eliminated_round: int | None = None
    eliminated_at: datetime | None = None
    final_position: int | None = None
    is_online: bool = True
    last_seen_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return not self.is_eliminated

    @property
    def is_health_depleted(self) -> bool:
        return self.health <= 0

    def apply_damage(self, amount: int) -> int:
        if self.is_eliminated:
            return self.health
        self.health = max(0, self.health - max(0, int(amount)))
        return self.health

    @property
    def is_pending_elimination(self) -> bool:
        return self.is_eliminated or self.is_health_depleted

    def heal(self, amount: int) -> int:
        if self.is_pending_elimination:
            return self.health
        self.health = min(self.health_ceiling, self.health + max(0, int(amount)))
        return self.health

    def add_score(self, points: int, *, is_correct: bool, at: datetime) -> int:
        if self.is_pending_elimination:
            return self.score
        self.score = max(0, self.score + int(points))
        self.streak = self.streak + 1 if is_correct else 0
        self.last_activity_at = at
        return self.score

    def has_power_up(self, power_up: PowerUpType) -> bool:
        return self.power_ups.get(power_up, 0) > 0

    def power_up_count(self, power_up: PowerUpType) -> int:
        return self.power_ups.get(power_up, 0)

    def use_power_up(self, power_up: PowerUpType) -> bool:
        if self.is_eliminated or not self.has_power_up(power_up):
            return False
        self.power_ups[power_up] -= 1
        return True

    def grant_power_up(self, power_up: PowerUpType, quantity: int = 1) -> None:
        if self.is_eliminated or quantity <= 0:
            return
        self.power_ups[power_up] = self.power_ups.get(power_up, 0) + quantity

    def activate_shield(self, now_utc: datetime) -> None:
        if self.is_eliminated:
            return
        self.shield = ShieldState(activated_at=now_utc)

    def consume_shield(self) -> bool:
        if self.shield is None or self.is_eliminated:
            return False
        self.shield = None
        return True

    def apply_score_result(self, result: ScoreResult, *, at: datetime) -> None:
        if self.is_pending_elimination or not result.counted:
            return
        for power_up in result.power_ups_consumed:
            self.use_power_up(power_up)
        self.add_score(result.points, is_correct=result.is_correct, at=at)
        if result.health_delta < 0:
            self.apply_damage(-result.health_delta)
        elif result.health_delta > 0:
            self.heal(result.health_delta)
        for power_up in result.power_ups_granted:
            self.grant_power_up(power_up)

    def eliminate(self, round_no: int, *, at: datetime, position: int | None = None) -> bool:
        if self.is_eliminated:
            return False
        self.is_eliminated = True
        self.eliminated_round = round_no
        self.eliminated_at = at
        self.final_position = position
        self.shield = None
        return True

    def mark_online(self, now_utc: datetime) -> None:
        if self.is_eliminated:
            return
        self.is_online = True
        self.last_seen_at = now_utc

    def mark_offline(self, now_utc: datetime) -> None:
        if self.is_eliminated:
            return
        self.is_online = False
        self.last_seen_at = now_utc

    def is_offline_expired(self, *, now_utc: datetime, timeout_seconds: int) -> bool:
        if self.is_online or self.last_seen_at is None:
            return False
        return now_utc - self.last_seen_at > timedelta(seconds=timeout_seconds)

    def needs_forced_elimination(self, *, now_utc: datetime, timeout_seconds: int) -> bool:
        if self.is_eliminated:
            return False
        return self.is_health_depleted or self.is_offline_expired(
            now_utc=now_utc,
            timeout_seconds=timeout_seconds,
        )
