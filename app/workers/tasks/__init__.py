from app.workers.tasks.battle_royale import run_battle_royale_rounds

__all__ = ["run_battle_royale_rounds"]
