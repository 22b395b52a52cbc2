from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, SmallInteger, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class QuizAnswer(Base):
    __tablename__ = "quiz_answers"
    __table_args__ = (Index("idx_quiz_answers_question", "question_id", "position"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("quiz_questions.question_id", ondelete="CASCADE"),
        nullable=False,
    )
    answer_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    position: Mapped[int] = mapped_column(SmallInteger, nullable=False)
