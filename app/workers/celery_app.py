from celery import Celery
from celery.signals import setup_logging

from app.core.config import get_settings
from app.core.logging import configure_logging

ROUNDS_QUEUE = "q_rounds"

settings = get_settings()

celery_app = Celery(
    "battle_royale_arena",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.battle_royale"],
)

celery_app.conf.update(
    task_default_queue=ROUNDS_QUEUE,
    task_routes={"app.workers.tasks.battle_royale.*": {"queue": ROUNDS_QUEUE}},
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_soft_time_limit=max(30, settings.battle_royale_round_scan_interval_seconds * 6),
    timezone="UTC",
    enable_utc=True,
)


@setup_logging.connect
def _configure_worker_logging(**_kwargs) -> None:
    configure_logging(settings.log_level, json_logs=settings.log_json)
