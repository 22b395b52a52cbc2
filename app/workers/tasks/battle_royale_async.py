from __future__ import annotations

from datetime import datetime, timezone

import structlog

from app.core.logging import bound_battle_context
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.db.session import SessionLocal
from app.game.battle_royale.engine import BattleRoyaleEngine
from app.game.battle_royale.errors import BattleRoyaleError
from app.workers.tasks.battle_royale_config import ROUND_BATCH_SIZE

logger = structlog.get_logger("app.workers.tasks.battle_royale")


def build_engine() -> BattleRoyaleEngine:
    return BattleRoyaleEngine.from_settings(session_factory=SessionLocal)


async def run_battle_royale_rounds_async(
    *,
    batch_size: int = ROUND_BATCH_SIZE,
    engine: BattleRoyaleEngine | None = None,
) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    resolved_batch_size = max(1, int(batch_size))

    async with SessionLocal() as session:
        due_sessions = await BattleRoyaleSessionsRepo.list_due_round_deadline_ids(
            session,
            now_utc=now_utc,
            limit=resolved_batch_size,
        )

    forced_eliminations_total = 0
    rounds_processed_total = 0
    rounds_skipped_total = 0
    eliminated_total = 0
    sessions_ended_total = 0
    sessions_failed_total = 0

    owns_engine = engine is None
    resolved_engine = engine or build_engine()
    try:
        for session_id, observed_round in due_sessions:
            try:
                with bound_battle_context(session_id=session_id, round_no=observed_round):
                    forced = await resolved_engine.check_automatic_eliminations(session_id=session_id)
                    result = await resolved_engine.process_elimination_round(
                        session_id=session_id,
                        expected_round=observed_round,
                    )
            except BattleRoyaleError as exc:
                sessions_failed_total += 1
                logger.warning(
                    "battle_royale_round_tick_session_failed",
                    session_id=str(session_id),
                    observed_round=observed_round,
                    error_type=type(exc).__name__,
                )
                continue

            forced_eliminations_total += len(forced)
            if result.skipped:
                rounds_skipped_total += 1
                continue
            rounds_processed_total += 1
            eliminated_total += len(result.eliminated)
            if result.game_over:
                sessions_ended_total += 1
    finally:
        if owns_engine:
            await resolved_engine.aclose()

    result_summary = {
        "batch_size": resolved_batch_size,
        "sessions_due_total": len(due_sessions),
        "forced_eliminations_total": forced_eliminations_total,
        "rounds_processed_total": rounds_processed_total,
        "rounds_skipped_total": rounds_skipped_total,
        "eliminated_total": eliminated_total,
        "sessions_ended_total": sessions_ended_total,
        "sessions_failed_total": sessions_failed_total,
    }
    logger.info("battle_royale_rounds_processed", **result_summary)
    return result_summary
