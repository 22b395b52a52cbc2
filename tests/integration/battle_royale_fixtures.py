from __future__ import annotations

import random
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import update

from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.models.quiz_answers import QuizAnswer
from app.db.models.quiz_questions import QuizQuestion
from app.db.session import SessionLocal
from app.game.battle_royale.engine import BattleRoyaleEngine
from app.game.battle_royale.leaderboard import LeaderboardProjector
from app.game.battle_royale.rules import BattleRoyaleRules
from app.services.broadcast import InMemoryBroadcastChannel
from app.services.leaderboard_cache import InMemoryLeaderboardCache

UTC = timezone.utc
QUIZ_ID = 7


def _build_engine(channel: InMemoryBroadcastChannel | None = None) -> BattleRoyaleEngine:
    return BattleRoyaleEngine(
        session_factory=SessionLocal,
        channel=channel or InMemoryBroadcastChannel(),
        projector=LeaderboardProjector(InMemoryLeaderboardCache()),
        rules=BattleRoyaleRules(power_up_drop_chance=0.0),
        rng=random.Random(11),
    )


async def _seed_question(*, question_id: str = "br-q-1", correct_answer_id: int = 2) -> None:
    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        session.add(
            QuizQuestion(
                question_id=question_id,
                quiz_id=QUIZ_ID,
                question_type="single_choice",
                question_text="Capital of France?",
                status="ACTIVE",
                created_at=now_utc,
                updated_at=now_utc,
            )
        )
        await session.flush()
        for position, answer_id in enumerate((1, 2, 3, 4), start=1):
            session.add(
                QuizAnswer(
                    id=answer_id,
                    question_id=question_id,
                    answer_text=f"answer {answer_id}",
                    is_correct=answer_id == correct_answer_id,
                    position=position,
                )
            )


async def _expire_round_deadline(session_id: UUID, *, deadline: datetime) -> None:
    async with SessionLocal.begin() as session:
        await session.execute(
            update(BattleRoyaleSession)
            .where(BattleRoyaleSession.id == session_id)
            .values(round_deadline=deadline)
        )
