from __future__ import annotations

from datetime import timedelta

import pytest

from app.game.battle_royale.errors import InvalidSessionStateError
from app.game.battle_royale.policy import HealthBlendedEliminationPolicy, TieredEliminationPolicy
from app.game.battle_royale.rounds import (
    check_automatic_eliminations,
    finish_session,
    process_elimination_round,
)
from app.game.battle_royale.types import SessionStatus
from tests.game.battle_royale_fixtures import NOW_UTC, _participant, _ranked_field, _session

POLICY = TieredEliminationPolicy()


def _events(outcome) -> list[str]:  # noqa: ANN001
    return [notification.event for notification in outcome.notifications]


def test_twenty_players_lose_six_and_round_advances_by_one() -> None:
    session = _session(current_round=3)
    field = _ranked_field(20)

    outcome = process_elimination_round(session, field, policy=POLICY, now_utc=NOW_UTC)

    assert len(outcome.result.eliminated) == 6
    assert outcome.result.remaining == 14
    assert outcome.result.round_no == 3
    assert outcome.result.next_round == 4
    assert outcome.result.game_over is False
    assert session.current_round == 4
    assert session.round_started_at == NOW_UTC
    assert sum(1 for participant in field if participant.is_active) == 14


def test_notifications_follow_worst_first_order_then_summary() -> None:
    session = _session()
    field = _ranked_field(20)

    outcome = process_elimination_round(session, field, policy=POLICY, now_utc=NOW_UTC)

    assert _events(outcome) == ["participant.eliminated"] * 6 + ["elimination.round"]
    eliminated_nicknames = [
        notification.payload["participant"]["nickname"] for notification in outcome.notifications[:-1]
    ]
    assert eliminated_nicknames == [f"player-{index:02d}" for index in range(1, 7)]
    summary = outcome.notifications[-1].payload
    assert summary["remaining_count"] == 14
    assert summary["next_round"] == 2
    assert summary["eliminated_round"] == 1
    assert summary["round"] == 1
    assert {notification.payload["round"] for notification in outcome.notifications} == {1}
    assert summary["session_id"] == str(session.session_id)


def test_final_positions_count_down_from_field_size() -> None:
    field = _ranked_field(20)

    outcome = process_elimination_round(_session(), field, policy=POLICY, now_utc=NOW_UTC)

    assert [view.final_position for view in outcome.result.eliminated] == [20, 19, 18, 17, 16, 15]


def test_four_players_lose_exactly_one() -> None:
    field = _ranked_field(4)

    outcome = process_elimination_round(_session(), field, policy=POLICY, now_utc=NOW_UTC)

    assert [view.nickname for view in outcome.result.eliminated] == ["player-01"]
    assert outcome.result.remaining == 3


def test_three_players_lose_exactly_one() -> None:
    outcome = process_elimination_round(
        _session(),
        _ranked_field(3),
        policy=POLICY,
        now_utc=NOW_UTC,
    )

    assert len(outcome.result.eliminated) == 1
    assert outcome.result.remaining == 2


def test_two_players_play_on_without_elimination() -> None:
    session = _session(current_round=5)

    outcome = process_elimination_round(session, _ranked_field(2), policy=POLICY, now_utc=NOW_UTC)

    assert outcome.result.eliminated == ()
    assert outcome.result.remaining == 2
    assert outcome.result.game_over is False
    assert session.status == SessionStatus.ACTIVE
    assert session.current_round == 6
    assert _events(outcome) == ["elimination.round"]


def test_single_survivor_wins_and_session_ends() -> None:
    session = _session(current_round=7)
    survivor = _participant("last-one", score=900)
    fallen = _participant("fallen", score=100)
    fallen.eliminate(6, at=NOW_UTC - timedelta(seconds=30), position=2)

    outcome = process_elimination_round(session, [survivor, fallen], policy=POLICY, now_utc=NOW_UTC)

    assert outcome.result.game_over is True
    assert outcome.result.eliminated == ()
    assert outcome.result.winner_participant_id == survivor.participant_id
    assert session.status == SessionStatus.ENDED
    assert session.ended_at == NOW_UTC
    assert session.current_round == 7
    assert survivor.final_position == 1
    assert outcome.touched == [survivor]
    assert _events(outcome) == ["battle_royale.ended"]
    assert outcome.notifications[0].payload["winner"]["id"] == str(survivor.participant_id)


def test_empty_field_ends_without_winner() -> None:
    session = _session()

    outcome = process_elimination_round(session, [], policy=POLICY, now_utc=NOW_UTC)

    assert outcome.result.game_over is True
    assert outcome.result.winner_participant_id is None
    assert outcome.notifications[0].payload["winner"] is None


def test_finish_session_places_survivors_by_standings() -> None:
    session = _session(current_round=9)
    leader = _participant("leader", score=4200)
    runner_up = _participant("runner-up", score=4100)
    fallen = _participant("fallen", score=5000)
    fallen.eliminate(8, at=NOW_UTC - timedelta(seconds=30), position=3)

    outcome = finish_session(session, [runner_up, fallen, leader], now_utc=NOW_UTC)

    assert outcome.result.game_over is True
    assert outcome.result.remaining == 2
    assert outcome.result.winner_participant_id == leader.participant_id
    assert session.status == SessionStatus.ENDED
    assert session.winner_participant_id == leader.participant_id
    assert (leader.final_position, runner_up.final_position, fallen.final_position) == (1, 2, 3)
    assert leader.is_eliminated is False
    assert outcome.touched == [leader, runner_up]
    ended = outcome.notifications[0].payload
    assert _events(outcome) == ["battle_royale.ended"]
    assert ended["winner"]["nickname"] == "leader"
    assert ended["total_rounds"] == 9
    assert [entry["final_position"] for entry in ended["final_standings"]] == [1, 2]


def test_finish_session_breaks_score_ties_by_latest_activity() -> None:
    earlier = _participant("earlier", score=300, activity_offset_seconds=-20)
    later = _participant("later", score=300, activity_offset_seconds=10)

    outcome = finish_session(_session(), [earlier, later], now_utc=NOW_UTC)

    assert outcome.result.winner_participant_id == later.participant_id
    assert earlier.final_position == 2


@pytest.mark.parametrize("status", [SessionStatus.WAITING, SessionStatus.ENDED])
def test_finish_session_requires_active_session(status: SessionStatus) -> None:
    with pytest.raises(InvalidSessionStateError):
        finish_session(_session(status=status), [_participant("solo")], now_utc=NOW_UTC)


@pytest.mark.parametrize("status", [SessionStatus.WAITING, SessionStatus.ENDED])
def test_round_on_inactive_session_is_refused(status: SessionStatus) -> None:
    with pytest.raises(InvalidSessionStateError):
        process_elimination_round(
            _session(status=status),
            _ranked_field(5),
            policy=POLICY,
            now_utc=NOW_UTC,
        )


def test_active_set_only_shrinks_across_rounds() -> None:
    session = _session()
    field = _ranked_field(30)
    previous = {participant.participant_id for participant in field}

    while session.status == SessionStatus.ACTIVE:
        process_elimination_round(session, field, policy=POLICY, now_utc=NOW_UTC)
        current = {participant.participant_id for participant in field if participant.is_active}
        assert current <= previous
        previous = current
        if len(current) == 2:
            break

    assert len(previous) == 2


def test_shield_spares_once_and_is_consumed() -> None:
    session = _session()
    field = _ranked_field(4)
    shielded = field[0]
    shielded.activate_shield(NOW_UTC)

    first = process_elimination_round(session, field, policy=POLICY, now_utc=NOW_UTC)

    assert [view.participant_id for view in first.result.eliminated] == [field[1].participant_id]
    assert shielded.is_active is True
    assert shielded.shield is None
    assert shielded in first.touched

    second = process_elimination_round(session, field, policy=POLICY, now_utc=NOW_UTC)
    assert [view.participant_id for view in second.result.eliminated] == [shielded.participant_id]


def test_health_blended_policy_resolves_head_to_head() -> None:
    session = _session()
    weaker = _participant("weaker", score=100, health=10)
    stronger = _participant("stronger", score=100, health=90)

    outcome = process_elimination_round(
        session,
        [stronger, weaker],
        policy=HealthBlendedEliminationPolicy(),
        now_utc=NOW_UTC,
    )

    assert [view.nickname for view in outcome.result.eliminated] == ["weaker"]
    assert outcome.result.remaining == 1


def test_automatic_eliminations_keep_round_and_use_current_round_number() -> None:
    session = _session(current_round=4)
    depleted = _participant("depleted", score=800, health=0)
    idle = _participant("idle", score=50)
    idle.mark_offline(NOW_UTC - timedelta(minutes=5))
    healthy = _participant("healthy", score=400)

    outcome = check_automatic_eliminations(
        session,
        [depleted, idle, healthy],
        now_utc=NOW_UTC,
        offline_timeout_seconds=180,
    )

    assert [view.nickname for view in outcome.result.eliminated] == ["idle", "depleted"]
    assert all(view.eliminated_round == 4 for view in outcome.result.eliminated)
    assert [view.final_position for view in outcome.result.eliminated] == [3, 2]
    assert session.current_round == 4
    assert healthy.is_active is True
    assert _events(outcome) == ["participant.eliminated", "participant.eliminated"]


def test_automatic_eliminations_skip_inactive_session() -> None:
    depleted = _participant("depleted", health=0)

    outcome = check_automatic_eliminations(
        _session(status=SessionStatus.ENDED),
        [depleted],
        now_utc=NOW_UTC,
    )

    assert outcome.result.eliminated == ()
    assert outcome.notifications == []
    assert depleted.is_active is True
