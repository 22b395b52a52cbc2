from __future__ import annotations

from datetime import timedelta

from app.game.battle_royale.types import PowerUpType
from tests.game.battle_royale_fixtures import NOW_UTC, _participant


def test_eliminated_participant_state_is_frozen() -> None:
    participant = _participant("alice", score=400, health=60)
    participant.grant_power_up(PowerUpType.SHIELD)

    assert participant.eliminate(3, at=NOW_UTC, position=7) is True

    participant.heal(25)
    participant.apply_damage(40)
    participant.add_score(500, is_correct=True, at=NOW_UTC)
    participant.grant_power_up(PowerUpType.HEALTH_BOOST)
    participant.mark_offline(NOW_UTC)

    assert participant.health == 60
    assert participant.score == 400
    assert participant.streak == 0
    assert participant.power_up_count(PowerUpType.HEALTH_BOOST) == 0
    assert participant.use_power_up(PowerUpType.SHIELD) is False
    assert participant.is_online is True
    assert participant.eliminated_round == 3
    assert participant.final_position == 7


def test_second_elimination_is_rejected() -> None:
    participant = _participant("bob")

    assert participant.eliminate(2, at=NOW_UTC, position=5) is True
    assert participant.eliminate(4, at=NOW_UTC + timedelta(seconds=30), position=2) is False
    assert participant.eliminated_round == 2
    assert participant.final_position == 5


def test_score_never_drops_below_zero() -> None:
    participant = _participant("carol", score=50)

    participant.add_score(-200, is_correct=False, at=NOW_UTC)

    assert participant.score == 0
    assert participant.streak == 0
    assert participant.last_activity_at == NOW_UTC


def test_health_is_clamped_to_zero_and_ceiling() -> None:
    participant = _participant("dave", health=10)

    assert participant.apply_damage(5) == 5
    assert participant.heal(500) == 100
    assert participant.apply_damage(250) == 0
    assert participant.is_health_depleted is True


def test_depleted_participant_cannot_heal_or_score_back() -> None:
    participant = _participant("dora", score=300, health=0, streak=2)

    assert participant.is_pending_elimination is True
    assert participant.heal(25) == 0
    assert participant.add_score(3000, is_correct=True, at=NOW_UTC) == 300
    assert participant.streak == 2
    assert participant.needs_forced_elimination(now_utc=NOW_UTC, timeout_seconds=180) is True


def test_correct_answers_extend_streak_and_wrong_answer_resets_it() -> None:
    participant = _participant("erin")

    participant.add_score(100, is_correct=True, at=NOW_UTC)
    participant.add_score(100, is_correct=True, at=NOW_UTC)
    assert participant.streak == 2

    participant.add_score(0, is_correct=False, at=NOW_UTC)
    assert participant.streak == 0


def test_power_up_inventory_counts_down() -> None:
    participant = _participant("frank")
    participant.grant_power_up(PowerUpType.TIME_FREEZE, quantity=2)

    assert participant.use_power_up(PowerUpType.TIME_FREEZE) is True
    assert participant.use_power_up(PowerUpType.TIME_FREEZE) is True
    assert participant.use_power_up(PowerUpType.TIME_FREEZE) is False
    assert participant.has_power_up(PowerUpType.TIME_FREEZE) is False


def test_offline_expiry_needs_more_than_timeout() -> None:
    participant = _participant("gina")
    participant.mark_offline(NOW_UTC)

    assert participant.is_offline_expired(now_utc=NOW_UTC + timedelta(seconds=180), timeout_seconds=180) is False
    assert participant.is_offline_expired(now_utc=NOW_UTC + timedelta(seconds=181), timeout_seconds=180) is True

    participant.mark_online(NOW_UTC + timedelta(seconds=200))
    assert participant.is_offline_expired(now_utc=NOW_UTC + timedelta(seconds=900), timeout_seconds=180) is False


def test_forced_elimination_triggers_on_depleted_health_or_expired_offline() -> None:
    depleted = _participant("hank", health=0)
    idle = _participant("ivy")
    idle.mark_offline(NOW_UTC - timedelta(minutes=4))
    healthy = _participant("jay")

    assert depleted.needs_forced_elimination(now_utc=NOW_UTC, timeout_seconds=180) is True
    assert idle.needs_forced_elimination(now_utc=NOW_UTC, timeout_seconds=180) is True
    assert healthy.needs_forced_elimination(now_utc=NOW_UTC, timeout_seconds=180) is False


def test_shield_is_single_use_and_cleared_on_elimination() -> None:
    participant = _participant("kim")
    participant.activate_shield(NOW_UTC)

    assert participant.consume_shield() is True
    assert participant.consume_shield() is False

    participant.activate_shield(NOW_UTC)
    participant.eliminate(1, at=NOW_UTC, position=4)
    assert participant.shield is None
