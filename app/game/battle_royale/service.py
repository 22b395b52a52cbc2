from app.game.battle_royale.engine import BattleRoyaleEngine
from app.game.battle_royale.gameplay import (
    activate_power_up,
    pick_next_question_id,
    submit_answer,
    update_presence,
)
from app.game.battle_royale.lifecycle import (
    check_automatic_eliminations,
    end_session,
    process_elimination_round,
)
from app.game.battle_royale.lobby import create_session, join_session, start_session
from app.game.battle_royale.queries import get_session_snapshot, get_session_stats

__all__ = [
    "BattleRoyaleEngine",
    "activate_power_up",
    "check_automatic_eliminations",
    "create_session",
    "end_session",
    "get_session_snapshot",
    "get_session_stats",
    "join_session",
    "pick_next_question_id",
    "process_elimination_round",
    "start_session",
    "submit_answer",
    "update_presence",
]
