from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from uuid import UUID

import structlog

from app.game.battle_royale.constants import LEADERBOARD_CACHE_TTL_SECONDS, leaderboard_cache_key
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.types import ParticipantView, SessionSnapshot
from app.services.leaderboard_cache import LeaderboardCache

logger = structlog.get_logger(__name__)


def _leaderboard_sort_key(participant: ParticipantState) -> tuple[object, ...]:
    eliminated_at = participant.eliminated_at.timestamp() if participant.eliminated_at else 0.0
    return (
        participant.is_eliminated,
        -participant.score,
        -eliminated_at,
        -participant.last_activity_at.timestamp(),
        -participant.joined_at.timestamp(),
        str(participant.participant_id),
    )


def rank_standings(participants: Sequence[ParticipantState]) -> list[ParticipantState]:
    return sorted(participants, key=_leaderboard_sort_key)


def project_leaderboard(participants: Sequence[ParticipantState]) -> list[ParticipantView]:
    ordered = rank_standings(participants)
    return [
        ParticipantView(
            participant_id=participant.participant_id,
            nickname=participant.nickname,
            avatar_url=participant.avatar_url,
            score=participant.score,
            streak=participant.streak,
            health=participant.health,
            power_ups={
                power_up.value: count for power_up, count in participant.power_ups.items() if count > 0
            },
            is_eliminated=participant.is_eliminated,
            eliminated_round=participant.eliminated_round,
            final_position=participant.final_position,
            current_position=index,
            is_online=participant.is_online,
        )
        for index, participant in enumerate(ordered, start=1)
    ]


def _view_to_payload(view: ParticipantView) -> dict[str, object]:
    return {
        "participant_id": str(view.participant_id),
        "nickname": view.nickname,
        "avatar_url": view.avatar_url,
        "score": view.score,
        "streak": view.streak,
        "health": view.health,
        "power_ups": dict(view.power_ups),
        "is_eliminated": view.is_eliminated,
        "eliminated_round": view.eliminated_round,
        "final_position": view.final_position,
        "current_position": view.current_position,
        "is_online": view.is_online,
    }


def _view_from_payload(payload: dict[str, object]) -> ParticipantView:
    return ParticipantView(
        participant_id=UUID(str(payload["participant_id"])),
        nickname=str(payload["nickname"]),
        avatar_url=payload.get("avatar_url"),  # type: ignore[arg-type]
        score=int(payload["score"]),  # type: ignore[arg-type]
        streak=int(payload["streak"]),  # type: ignore[arg-type]
        health=int(payload["health"]),  # type: ignore[arg-type]
        power_ups={str(key): int(value) for key, value in dict(payload["power_ups"]).items()},  # type: ignore[arg-type]
        is_eliminated=bool(payload["is_eliminated"]),
        eliminated_round=payload.get("eliminated_round"),  # type: ignore[arg-type]
        final_position=payload.get("final_position"),  # type: ignore[arg-type]
        current_position=int(payload["current_position"]),  # type: ignore[arg-type]
        is_online=bool(payload["is_online"]),
    )


class LeaderboardProjector:
    """Position-ranked leaderboard cached per ``(session, round)``."""

    def __init__(
        self,
        cache: LeaderboardCache,
        *,
        ttl_seconds: int = LEADERBOARD_CACHE_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._ttl_seconds = max(1, int(ttl_seconds))

    @property
    def cache(self) -> LeaderboardCache:
        return self._cache

    async def get_or_project(
        self,
        session: SessionSnapshot,
        load_participants: Callable[[], Awaitable[Sequence[ParticipantState]]],
    ) -> list[ParticipantView]:
        key = leaderboard_cache_key(session_id=session.session_id, round_no=session.current_round)
        cached = await self._cache.get(key)
        if cached is not None:
            return [_view_from_payload(item) for item in cached]

        views = project_leaderboard(await load_participants())
        await self._cache.set(key, [_view_to_payload(view) for view in views], self._ttl_seconds)
        return views

    async def invalidate(self, *, session_id: UUID, round_no: int) -> None:
        key = leaderboard_cache_key(session_id=session_id, round_no=round_no)
        try:
            await self._cache.delete(key)
        except Exception as exc:
            logger.warning(
                "battle_royale_leaderboard_invalidate_failed",
                session_id=str(session_id),
                round_no=round_no,
                error_type=type(exc).__name__,
            )
