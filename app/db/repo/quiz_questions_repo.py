from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quiz_answers import QuizAnswer
from app.db.models.quiz_questions import QuizQuestion


class QuizQuestionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: str) -> QuizQuestion | None:
        return await session.get(QuizQuestion, question_id)

    @staticmethod
    async def list_answers(session: AsyncSession, *, question_id: str) -> list[QuizAnswer]:
        stmt = (
            select(QuizAnswer)
            .where(QuizAnswer.question_id == question_id)
            .order_by(QuizAnswer.position.asc(), QuizAnswer.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_question_ids_for_quizzes(
        session: AsyncSession,
        *,
        quiz_ids: Sequence[int],
        exclude_question_ids: Sequence[str] | None = None,
    ) -> list[str]:
        if not quiz_ids:
            return []
        stmt = (
            select(QuizQuestion.question_id)
            .where(
                QuizQuestion.quiz_id.in_(tuple(quiz_ids)),
                QuizQuestion.status == "ACTIVE",
            )
            .order_by(QuizQuestion.question_id.asc())
        )
        if exclude_question_ids:
            stmt = stmt.where(QuizQuestion.question_id.not_in(tuple(exclude_question_ids)))
        result = await session.execute(stmt)
        return list(result.scalars().all())
