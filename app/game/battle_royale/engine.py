from __future__ import annotations

import random
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import TypeVar
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.game.battle_royale import events, gameplay, lifecycle, lobby, queries
from app.game.battle_royale.constants import BATTLE_ROYALE_DEFAULT_ELIMINATION_INTERVAL_SECONDS
from app.game.battle_royale.leaderboard import LeaderboardProjector
from app.game.battle_royale.participant import ParticipantState
from app.game.battle_royale.rules import BattleRoyaleRules, StateChange
from app.game.battle_royale.types import (
    EliminatedParticipantView,
    ParticipantView,
    PowerUpActivationResult,
    PowerUpType,
    RoundResult,
    ScoreResult,
    SessionSnapshot,
    SessionStats,
)
from app.services.broadcast import BroadcastChannel, RedisBroadcastChannel, dispatch_notifications
from app.services.leaderboard_cache import build_leaderboard_cache

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BattleRoyaleEngine:
    """Runs each operation in its own transaction.

    Cache invalidation and notification delivery happen only after commit, so
    a failing channel never rolls back game state.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        channel: BroadcastChannel,
        projector: LeaderboardProjector,
        rules: BattleRoyaleRules | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._channel = channel
        self._projector = projector
        self._rules = rules or BattleRoyaleRules()
        self._rng = rng or random.Random()
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> BattleRoyaleEngine:
        resolved = settings or get_settings()
        if session_factory is None:
            from app.db.session import SessionLocal

            session_factory = SessionLocal
        cache = build_leaderboard_cache(
            backend=resolved.battle_royale_leaderboard_cache_backend,
            redis_url=resolved.redis_url,
        )
        return cls(
            session_factory=session_factory,
            channel=RedisBroadcastChannel.from_url(resolved.redis_url),
            projector=LeaderboardProjector(
                cache,
                ttl_seconds=resolved.battle_royale_leaderboard_ttl_seconds,
            ),
            rules=BattleRoyaleRules.from_settings(resolved),
        )

    @property
    def rules(self) -> BattleRoyaleRules:
        return self._rules

    async def _commit(
        self,
        operation: Callable[[AsyncSession, datetime], Awaitable[StateChange[T]]],
    ) -> StateChange[T]:
        now_utc = self._clock()
        async with self._session_factory.begin() as session:
            change = await operation(session, now_utc)
        await self._after_commit(change)
        return change

    async def _after_commit(self, change: StateChange[object]) -> None:
        for round_no in change.invalidate_rounds:
            await self._projector.invalidate(session_id=change.session_id, round_no=round_no)
        if not change.notifications:
            return
        delivery = await dispatch_notifications(self._channel, change.notifications)
        if delivery["failed"]:
            logger.warning(
                "battle_royale_notifications_partially_delivered",
                session_id=str(change.session_id),
                published=delivery["published"],
                failed=delivery["failed"],
            )

    async def create_session(
        self,
        *,
        name: str,
        max_participants: int,
        quiz_pool: Sequence[int],
        elimination_interval_seconds: int = BATTLE_ROYALE_DEFAULT_ELIMINATION_INTERVAL_SECONDS,
        created_by: int | None = None,
    ) -> SessionSnapshot:
        now_utc = self._clock()
        async with self._session_factory.begin() as session:
            return await lobby.create_session(
                session,
                name=name,
                max_participants=max_participants,
                elimination_interval_seconds=elimination_interval_seconds,
                quiz_pool=quiz_pool,
                now_utc=now_utc,
                created_by=created_by,
            )

    async def join_session(
        self,
        *,
        session_id: UUID,
        nickname: str,
        user_id: int | None = None,
        avatar_url: str | None = None,
    ) -> ParticipantState:
        change = await self._commit(
            lambda session, now_utc: lobby.join_session(
                session,
                session_id=session_id,
                nickname=nickname,
                now_utc=now_utc,
                rules=self._rules,
                rng=self._rng,
                user_id=user_id,
                avatar_url=avatar_url,
            )
        )
        return change.value

    async def start_session(self, *, session_id: UUID) -> SessionSnapshot:
        change = await self._commit(
            lambda session, now_utc: lobby.start_session(
                session,
                session_id=session_id,
                now_utc=now_utc,
            )
        )
        return change.value

    async def submit_answer(
        self,
        *,
        session_id: UUID,
        participant_id: UUID,
        question_id: str,
        answer_ids: Sequence[int],
        response_time_seconds: float,
    ) -> ScoreResult:
        change = await self._commit(
            lambda session, now_utc: gameplay.submit_answer(
                session,
                session_id=session_id,
                participant_id=participant_id,
                question_id=question_id,
                answer_ids=answer_ids,
                response_time_seconds=response_time_seconds,
                now_utc=now_utc,
                rules=self._rules,
                rng=self._rng,
            )
        )
        return change.value

    async def activate_power_up(
        self,
        *,
        session_id: UUID,
        participant_id: UUID,
        power_up: PowerUpType,
    ) -> PowerUpActivationResult:
        change = await self._commit(
            lambda session, now_utc: gameplay.activate_power_up(
                session,
                session_id=session_id,
                participant_id=participant_id,
                power_up=power_up,
                now_utc=now_utc,
            )
        )
        return change.value

    async def update_presence(
        self,
        *,
        session_id: UUID,
        participant_id: UUID,
        is_online: bool,
    ) -> ParticipantState:
        change = await self._commit(
            lambda session, now_utc: gameplay.update_presence(
                session,
                session_id=session_id,
                participant_id=participant_id,
                is_online=is_online,
                now_utc=now_utc,
            )
        )
        return change.value

    async def next_question_id(
        self,
        *,
        session_id: UUID,
        exclude_question_ids: Sequence[str] | None = None,
    ) -> str | None:
        async with self._session_factory() as session:
            return await gameplay.pick_next_question_id(
                session,
                session_id=session_id,
                rng=self._rng,
                exclude_question_ids=exclude_question_ids,
            )

    async def _observed_round(self, session_id: UUID) -> int:
        async with self._session_factory() as session:
            snapshot = await queries.get_session_snapshot(session, session_id=session_id)
        return snapshot.current_round

    async def process_elimination_round(
        self,
        *,
        session_id: UUID,
        expected_round: int | None = None,
    ) -> RoundResult:
        """Processes the round the caller observed.

        Without ``expected_round`` the current round is read first, so of two
        racing calls only one advances the session and the other is skipped.
        """
        if expected_round is None:
            expected_round = await self._observed_round(session_id)
        change = await self._commit(
            lambda session, now_utc: lifecycle.process_elimination_round(
                session,
                session_id=session_id,
                now_utc=now_utc,
                rules=self._rules,
                expected_round=expected_round,
            )
        )
        if not change.value.skipped:
            await self.publish_leaderboard(session_id=session_id)
        return change.value

    async def check_automatic_eliminations(
        self,
        *,
        session_id: UUID,
    ) -> tuple[EliminatedParticipantView, ...]:
        change = await self._commit(
            lambda session, now_utc: lifecycle.check_automatic_eliminations(
                session,
                session_id=session_id,
                now_utc=now_utc,
                rules=self._rules,
            )
        )
        if change.value.eliminated:
            await self.publish_leaderboard(session_id=session_id)
        return change.value.eliminated

    async def end_session(self, *, session_id: UUID) -> RoundResult:
        change = await self._commit(
            lambda session, now_utc: lifecycle.end_session(
                session,
                session_id=session_id,
                now_utc=now_utc,
            )
        )
        if not change.value.skipped:
            await self.publish_leaderboard(session_id=session_id)
        return change.value

    async def _leaderboard(self, session_id: UUID) -> tuple[SessionSnapshot, list[ParticipantView]]:
        async with self._session_factory() as session:
            snapshot = await queries.get_session_snapshot(session, session_id=session_id)
            views = await self._projector.get_or_project(
                snapshot,
                lambda: queries.list_participant_states(session, session_id=session_id),
            )
        return snapshot, views

    async def get_leaderboard(self, *, session_id: UUID) -> list[ParticipantView]:
        _, views = await self._leaderboard(session_id)
        return views

    async def publish_leaderboard(self, *, session_id: UUID) -> list[ParticipantView]:
        snapshot, views = await self._leaderboard(session_id)
        await dispatch_notifications(
            self._channel,
            [events.leaderboard_updated(snapshot, leaderboard=views, now_utc=self._clock())],
        )
        return views

    async def get_session_stats(self, *, session_id: UUID) -> SessionStats:
        async with self._session_factory() as session:
            return await queries.get_session_stats(
                session,
                session_id=session_id,
                now_utc=self._clock(),
            )

    async def aclose(self) -> None:
        for resource in (self._channel, self._projector.cache):
            close = getattr(resource, "aclose", None)
            if close is not None:
                await close()
