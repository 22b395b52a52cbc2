from app.db.repo.battle_royale_participants_repo import BattleRoyaleParticipantsRepo
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.db.repo.quiz_questions_repo import QuizQuestionsRepo

__all__ = [
    "BattleRoyaleParticipantsRepo",
    "BattleRoyaleSessionsRepo",
    "QuizQuestionsRepo",
]
