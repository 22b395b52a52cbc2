from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from app.game.battle_royale.constants import (
    EVENT_BATTLE_ROYALE_ENDED,
    EVENT_BATTLE_ROYALE_STARTED,
    EVENT_ELIMINATION_ROUND,
    EVENT_LEADERBOARD_UPDATED,
    EVENT_PARTICIPANT_ELIMINATED,
    EVENT_PARTICIPANT_JOINED,
    session_topic,
)
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import (
    BattleRoyaleNotification,
    EliminatedParticipantView,
    ParticipantView,
    SessionSnapshot,
)


def _notification(
    session: SessionSnapshot,
    *,
    event: str,
    now_utc: datetime,
    payload: dict[str, object],
) -> BattleRoyaleNotification:
    return BattleRoyaleNotification(
        topic=session_topic(session.session_id),
        event=event,
        payload={
            "session_id": str(session.session_id),
            "round": session.current_round,
            **payload,
            "timestamp": now_utc.isoformat(),
        },
    )


def eliminated_view(participant: ParticipantState) -> EliminatedParticipantView:
    return EliminatedParticipantView(
        participant_id=participant.participant_id,
        nickname=participant.nickname,
        score=participant.score,
        eliminated_round=int(participant.eliminated_round or 0),
        final_position=participant.final_position,
    )


def _eliminated_payload(view: EliminatedParticipantView) -> dict[str, object]:
    return {
        "id": str(view.participant_id),
        "nickname": view.nickname,
        "final_position": view.final_position,
        "eliminated_round": view.eliminated_round,
        "score": view.score,
    }


def participant_joined(
    session: SessionSnapshot,
    participant: ParticipantState,
    *,
    participants_total: int,
    now_utc: datetime,
) -> BattleRoyaleNotification:
    return _notification(
        session,
        event=EVENT_PARTICIPANT_JOINED,
        now_utc=now_utc,
        payload={
            "participant": {
                "id": str(participant.participant_id),
                "nickname": participant.nickname,
                "avatar_url": participant.avatar_url,
            },
            "participants_total": participants_total,
        },
    )


def session_started(
    session: SessionSnapshot,
    *,
    participants_total: int,
    now_utc: datetime,
) -> BattleRoyaleNotification:
    return _notification(
        session,
        event=EVENT_BATTLE_ROYALE_STARTED,
        now_utc=now_utc,
        payload={
            "participants_total": participants_total,
            "elimination_interval": session.elimination_interval_seconds,
        },
    )


def participant_eliminated(
    session: SessionSnapshot,
    view: EliminatedParticipantView,
    *,
    remaining: int,
    now_utc: datetime,
) -> BattleRoyaleNotification:
    return _notification(
        session,
        event=EVENT_PARTICIPANT_ELIMINATED,
        now_utc=now_utc,
        payload={
            "participant": _eliminated_payload(view),
            "remaining_participants": remaining,
        },
    )


def elimination_round(
    session: SessionSnapshot,
    *,
    round_no: int,
    eliminated: Sequence[EliminatedParticipantView],
    remaining: int,
    now_utc: datetime,
) -> BattleRoyaleNotification:
    total_before = remaining + len(eliminated)
    percentage = round(len(eliminated) / total_before * 100, 1) if total_before else 0.0
    return _notification(
        session,
        event=EVENT_ELIMINATION_ROUND,
        now_utc=now_utc,
        payload={
            "round": round_no,
            "eliminated_round": round_no,
            "eliminated_participants": [_eliminated_payload(view) for view in eliminated],
            "remaining_count": remaining,
            "next_round": session.current_round,
            "next_elimination_in": session.elimination_interval_seconds,
            "elimination_stats": {
                "eliminated_this_round": len(eliminated),
                "elimination_percentage": percentage,
            },
        },
    )


def session_ended(
    session: SessionSnapshot,
    *,
    winner: ParticipantState | None,
    now_utc: datetime,
    standings: Sequence[ParticipantState] = (),
) -> BattleRoyaleNotification:
    winner_payload: dict[str, object] | None = None
    if winner is not None:
        winner_payload = {
            "id": str(winner.participant_id),
            "nickname": winner.nickname,
            "score": winner.score,
            "avatar_url": winner.avatar_url,
        }
    return _notification(
        session,
        event=EVENT_BATTLE_ROYALE_ENDED,
        now_utc=now_utc,
        payload={
            "winner": winner_payload,
            "total_rounds": session.current_round,
            "final_standings": [
                {
                    "id": str(participant.participant_id),
                    "nickname": participant.nickname,
                    "score": participant.score,
                    "final_position": participant.final_position,
                }
                for participant in standings
            ],
        },
    )


def leaderboard_updated(
    session: SessionSnapshot,
    *,
    leaderboard: Sequence[ParticipantView],
    now_utc: datetime,
) -> BattleRoyaleNotification:
    return _notification(
        session,
        event=EVENT_LEADERBOARD_UPDATED,
        now_utc=now_utc,
        payload={
            "leaderboard": [
                {
                    "id": str(view.participant_id),
                    "nickname": view.nickname,
                    "score": view.score,
                    "health": view.health,
                    "is_eliminated": view.is_eliminated,
                    "position": view.current_position,
                }
                for view in leaderboard
            ],
        },
    )
