from app.db.models.base import Base
from app.db.models.battle_royale_participants import BattleRoyaleParticipant
from app.db.models.battle_royale_sessions import BattleRoyaleSession
from app.db.models.quiz_answers import QuizAnswer
from app.db.models.quiz_questions import QuizQuestion

__all__ = [
    "Base",
    "BattleRoyaleParticipant",
    "BattleRoyaleSession",
    "QuizAnswer",
    "QuizQuestion",
]
