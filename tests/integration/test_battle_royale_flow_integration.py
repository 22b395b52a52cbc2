from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.session import SessionLocal
from app.game.battle_royale.errors import InsufficientParticipantsError, NicknameTakenError
from app.game.battle_royale.types import SessionStatus
from app.services.broadcast import InMemoryBroadcastChannel
from app.workers.tasks import battle_royale_async
from tests.integration.battle_royale_fixtures import (
    QUIZ_ID,
    _build_engine,
    _expire_round_deadline,
    _seed_question,
)

UTC = timezone.utc


@pytest.mark.asyncio
async def test_battle_royale_runs_to_a_single_winner() -> None:
    await _seed_question()
    channel = InMemoryBroadcastChannel()
    engine = _build_engine(channel)

    snapshot = await engine.create_session(
        name="Integration Finals",
        max_participants=10,
        quiz_pool=[QUIZ_ID],
    )
    players = [
        await engine.join_session(session_id=snapshot.session_id, nickname=nickname)
        for nickname in ("ana", "ben", "cid", "dee", "eve")
    ]
    with pytest.raises(NicknameTakenError):
        await engine.join_session(session_id=snapshot.session_id, nickname="ana")

    started = await engine.start_session(session_id=snapshot.session_id)
    assert started.status == SessionStatus.ACTIVE
    assert started.current_round == 1

    for player, response_time in zip(players[:4], (5.0, 6.0, 7.0, 8.0)):
        result = await engine.submit_answer(
            session_id=snapshot.session_id,
            participant_id=player.participant_id,
            question_id="br-q-1",
            answer_ids=[2],
            response_time_seconds=response_time,
        )
        assert result.is_correct is True
    wrong = await engine.submit_answer(
        session_id=snapshot.session_id,
        participant_id=players[4].participant_id,
        question_id="br-q-1",
        answer_ids=[1],
        response_time_seconds=1.0,
    )
    assert wrong.points == 0

    first_round = await engine.process_elimination_round(
        session_id=snapshot.session_id,
        expected_round=1,
    )
    assert [view.nickname for view in first_round.eliminated] == ["eve"]
    assert first_round.eliminated[0].final_position == 5
    assert first_round.next_round == 2

    # Two ticks racing for the same round: exactly one of them processes it.
    racing = await asyncio.gather(
        _build_engine().process_elimination_round(session_id=snapshot.session_id, expected_round=2),
        _build_engine().process_elimination_round(session_id=snapshot.session_id, expected_round=2),
    )
    processed = [result for result in racing if not result.skipped]
    assert len(processed) == 1
    assert [view.nickname for view in processed[0].eliminated] == ["dee"]

    await _expire_round_deadline(
        snapshot.session_id,
        deadline=datetime.now(UTC) - timedelta(minutes=1),
    )
    tick = await battle_royale_async.run_battle_royale_rounds_async(batch_size=10, engine=engine)
    assert tick["sessions_due_total"] == 1
    assert tick["rounds_processed_total"] == 1
    assert tick["eliminated_total"] == 1

    head_to_head = await engine.process_elimination_round(session_id=snapshot.session_id)
    assert head_to_head.eliminated == ()
    assert head_to_head.remaining == 2

    async with SessionLocal.begin() as session:
        await session.execute(
            update(BattleRoyaleParticipant)
            .where(BattleRoyaleParticipant.id == players[1].participant_id)
            .values(health=0)
        )
    forced = await engine.check_automatic_eliminations(session_id=snapshot.session_id)
    assert [view.nickname for view in forced] == ["ben"]
    assert forced[0].final_position == 2

    final = await engine.process_elimination_round(session_id=snapshot.session_id)
    assert final.game_over is True
    assert final.winner_participant_id == players[0].participant_id

    late_answer = await engine.submit_answer(
        session_id=snapshot.session_id,
        participant_id=players[0].participant_id,
        question_id="br-q-1",
        answer_ids=[2],
        response_time_seconds=1.0,
    )
    assert late_answer.counted is False

    leaderboard = await engine.get_leaderboard(session_id=snapshot.session_id)
    assert [view.nickname for view in leaderboard][:2] == ["ana", "ben"]
    assert leaderboard[0].final_position == 1

    stats = await engine.get_session_stats(session_id=snapshot.session_id)
    assert stats.total_participants == 5
    assert stats.eliminated_count == 4
    assert stats.elimination_countdown_seconds == 0

    events = channel.events()
    assert events.count("participant.joined") == 5
    assert "battle_royale.started" in events
    assert events[-1] == "leaderboard.updated"
    assert "battle_royale.ended" in events

    await engine.aclose()


@pytest.mark.asyncio
async def test_presenter_ends_a_stalled_final() -> None:
    await _seed_question()
    channel = InMemoryBroadcastChannel()
    engine = _build_engine(channel)
    snapshot = await engine.create_session(name="Stalled Final", max_participants=4, quiz_pool=[QUIZ_ID])
    players = [
        await engine.join_session(session_id=snapshot.session_id, nickname=nickname)
        for nickname in ("ana", "ben", "cid", "dee")
    ]
    await engine.start_session(session_id=snapshot.session_id)
    for player, response_time in zip(players[:2], (1.0, 9.0)):
        await engine.submit_answer(
            session_id=snapshot.session_id,
            participant_id=player.participant_id,
            question_id="br-q-1",
            answer_ids=[2],
            response_time_seconds=response_time,
        )

    await engine.process_elimination_round(session_id=snapshot.session_id)
    await engine.process_elimination_round(session_id=snapshot.session_id)
    stalled = await engine.process_elimination_round(session_id=snapshot.session_id)
    assert stalled.eliminated == ()
    assert stalled.remaining == 2

    ended = await engine.end_session(session_id=snapshot.session_id)
    assert ended.game_over is True
    assert ended.winner_participant_id == players[0].participant_id

    again = await engine.end_session(session_id=snapshot.session_id)
    assert again.skipped is True

    leaderboard = await engine.get_leaderboard(session_id=snapshot.session_id)
    assert [(view.nickname, view.final_position) for view in leaderboard[:2]] == [("ana", 1), ("ben", 2)]
    assert sorted(view.final_position for view in leaderboard) == [1, 2, 3, 4]
    assert "battle_royale.ended" in channel.events()

    await engine.aclose()


@pytest.mark.asyncio
async def test_start_refused_below_four_participants() -> None:
    await _seed_question()
    engine = _build_engine()
    snapshot = await engine.create_session(
        name="Too Small",
        max_participants=10,
        quiz_pool=[QUIZ_ID],
    )
    for nickname in ("ana", "ben", "cid"):
        await engine.join_session(session_id=snapshot.session_id, nickname=nickname)

    with pytest.raises(InsufficientParticipantsError):
        await engine.start_session(session_id=snapshot.session_id)

    stats = await engine.get_session_stats(session_id=snapshot.session_id)
    assert stats.total_participants == 3
    assert stats.current_round == 0
