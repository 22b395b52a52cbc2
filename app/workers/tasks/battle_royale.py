from __future__ import annotations

from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app
from app.workers.tasks.battle_royale_async import (
    run_battle_royale_rounds_async as _run_battle_royale_rounds_async,
)
from app.workers.tasks.battle_royale_config import ROUND_BATCH_SIZE
from app.workers.tasks.battle_royale_schedule import configure_battle_royale_schedule

run_battle_royale_rounds_async = _run_battle_royale_rounds_async

__all__ = ["run_battle_royale_rounds", "run_battle_royale_rounds_async"]


@celery_app.task(name="app.workers.tasks.battle_royale.run_battle_royale_rounds")
def run_battle_royale_rounds(batch_size: int = ROUND_BATCH_SIZE) -> dict[str, int]:
    return run_async_job(
        run_battle_royale_rounds_async(batch_size=batch_size),
        job_name="battle_royale_rounds",
    )


configure_battle_royale_schedule(celery_app)
