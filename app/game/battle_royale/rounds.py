from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from app.game.battle_royale import events
from app.game.battle_royale.constants import OFFLINE_TIMEOUT_SECONDS
from app.game.battle_royale.errors import InvalidSessionStateError
from app.game.battle_royale.leaderboard import rank_standings
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.policy import (
    EliminationPolicy,
    TieredEliminationPolicy,
    select_for_elimination,
)
from app.game.battle_royale.types import (
    RoundOutcome,
    RoundResult,
    SessionSnapshot,
    SessionStatus,
)


def _require_active(session: SessionSnapshot) -> None:
    if session.status != SessionStatus.ACTIVE:
        raise InvalidSessionStateError(
            f"session {session.session_id} is {session.status.value}, expected ACTIVE"
        )


def end_session(
    session: SessionSnapshot,
    *,
    active: Sequence[ParticipantState],
    now_utc: datetime,
) -> RoundOutcome:
    """Ends the session and places survivors 1..k in standings order."""
    standings = rank_standings(active)
    winner = standings[0] if standings else None
    session.status = SessionStatus.ENDED
    session.ended_at = now_utc
    session.winner_participant_id = winner.participant_id if winner is not None else None
    touched: list[ParticipantState] = []
    for position, participant in enumerate(standings, start=1):
        participant.final_position = position
        touched.append(participant)

    return RoundOutcome(
        result=RoundResult(
            session_id=session.session_id,
            round_no=session.current_round,
            eliminated=(),
            remaining=len(active),
            game_over=True,
            winner_participant_id=session.winner_participant_id,
        ),
        notifications=[
            events.session_ended(session, winner=winner, now_utc=now_utc, standings=standings),
        ],
        touched=touched,
    )


def finish_session(
    session: SessionSnapshot,
    participants: Sequence[ParticipantState],
    *,
    now_utc: datetime,
) -> RoundOutcome:
    _require_active(session)
    active = [participant for participant in participants if participant.is_active]
    return end_session(session, active=active, now_utc=now_utc)


def process_elimination_round(
    session: SessionSnapshot,
    participants: Sequence[ParticipantState],
    *,
    policy: EliminationPolicy,
    now_utc: datetime,
) -> RoundOutcome:
    """Runs one elimination cycle over an in-memory snapshot.

    Raises ``InvalidSessionStateError`` when the session is not active.
    Eliminations are applied and announced worst-first, followed by the
    round summary.
    """
    _require_active(session)
    active = [participant for participant in participants if participant.is_active]
    if len(active) <= 1:
        return end_session(session, active=active, now_utc=now_utc)

    round_no = session.current_round
    decision = select_for_elimination(active, policy=policy)

    remaining = len(active)
    eliminated_views = []
    notifications = []
    touched: list[ParticipantState] = []
    for participant in decision.eliminated:
        if not participant.eliminate(round_no, at=now_utc, position=remaining):
            continue
        remaining -= 1
        view = events.eliminated_view(participant)
        eliminated_views.append(view)
        touched.append(participant)
        notifications.append(
            events.participant_eliminated(session, view, remaining=remaining, now_utc=now_utc)
        )

    for participant in decision.shielded:
        if participant.consume_shield():
            touched.append(participant)

    session.current_round = round_no + 1
    session.round_started_at = now_utc
    notifications.append(
        events.elimination_round(
            session,
            round_no=round_no,
            eliminated=eliminated_views,
            remaining=remaining,
            now_utc=now_utc,
        )
    )

    return RoundOutcome(
        result=RoundResult(
            session_id=session.session_id,
            round_no=round_no,
            eliminated=tuple(eliminated_views),
            remaining=remaining,
            game_over=False,
            next_round=session.current_round,
        ),
        notifications=notifications,
        touched=touched,
    )


def check_automatic_eliminations(
    session: SessionSnapshot,
    participants: Sequence[ParticipantState],
    *,
    now_utc: datetime,
    offline_timeout_seconds: int = OFFLINE_TIMEOUT_SECONDS,
) -> RoundOutcome:
    """Force-eliminates depleted or long-offline participants.

    Uses the current round number and never advances it. Sessions that are
    not active produce an empty outcome.
    """
    active = [participant for participant in participants if participant.is_active]
    outcome = RoundOutcome(
        result=RoundResult(
            session_id=session.session_id,
            round_no=session.current_round,
            eliminated=(),
            remaining=len(active),
            game_over=False,
            next_round=session.current_round,
        )
    )
    if session.status != SessionStatus.ACTIVE:
        return outcome

    remaining = len(active)
    eliminated_views = []
    for participant in TieredEliminationPolicy().rank_worst_first(active):
        if not participant.needs_forced_elimination(
            now_utc=now_utc,
            timeout_seconds=offline_timeout_seconds,
        ):
            continue
        if not participant.eliminate(session.current_round, at=now_utc, position=remaining):
            continue
        remaining -= 1
        view = events.eliminated_view(participant)
        eliminated_views.append(view)
        outcome.touched.append(participant)
        outcome.notifications.append(
            events.participant_eliminated(session, view, remaining=remaining, now_utc=now_utc)
        )

    outcome.result = RoundResult(
        session_id=session.session_id,
        round_no=session.current_round,
        eliminated=tuple(eliminated_views),
        remaining=remaining,
        game_over=False,
        next_round=session.current_round,
    )
    return outcome
