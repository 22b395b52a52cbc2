from __future__ import annotations

from app.workers.celery_app import ROUNDS_QUEUE
from app.workers.tasks.battle_royale_config import ROUND_SCAN_INTERVAL_SECONDS


def configure_battle_royale_schedule(celery_app) -> None:
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "battle-royale-round-tick": {
                "task": "app.workers.tasks.battle_royale.run_battle_royale_rounds",
                "schedule": float(ROUND_SCAN_INTERVAL_SECONDS),
                "options": {"queue": ROUNDS_QUEUE, "expires": float(ROUND_SCAN_INTERVAL_SECONDS)},
            }
        }
    )
