from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.repo.battle_royale_sessions_repo import BattleRoyaleSessionsRepo
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CheckResult = dict[str, Any]


def _failed(error: str, **extra: Any) -> CheckResult:
    return {"status": "failed", "error": error, **extra}


async def _check_database() -> CheckResult:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("health_database_check_failed", error_type=type(exc).__name__)
        return _failed("database_unavailable")
    return {"status": "ok"}


async def _check_redis() -> CheckResult:
    client = Redis.from_url(get_settings().redis_url)
    try:
        if await client.ping() is not True:
            return _failed("redis_unexpected_ping")
    except Exception as exc:
        logger.warning("health_redis_check_failed", error_type=type(exc).__name__)
        return _failed("redis_unavailable")
    finally:
        await client.aclose()
    return {"status": "ok"}


def _check_round_workers_sync() -> CheckResult:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = inspector.ping() if inspector is not None else None
    except Exception as exc:
        logger.warning("health_round_workers_check_failed", error_type=type(exc).__name__)
        return _failed("celery_unavailable")
    if not replies:
        return _failed("no_round_workers")
    return {"status": "ok", "workers": len(replies)}


async def _check_round_workers() -> CheckResult:
    return await asyncio.to_thread(_check_round_workers_sync)


async def _check_round_backlog() -> CheckResult:
    grace = timedelta(seconds=get_settings().battle_royale_round_overdue_grace_seconds)
    try:
        async with SessionLocal() as session:
            overdue = await BattleRoyaleSessionsRepo.count_overdue_rounds(
                session,
                deadline_before=datetime.now(timezone.utc) - grace,
            )
    except Exception as exc:
        logger.warning("health_round_backlog_check_failed", error_type=type(exc).__name__)
        return _failed("database_unavailable")
    if overdue:
        return _failed("rounds_overdue", overdue_sessions=overdue)
    return {"status": "ok", "overdue_sessions": 0}


async def _run_checks(checks: dict[str, Callable[[], Awaitable[CheckResult]]]) -> dict[str, CheckResult]:
    results = await asyncio.gather(*(check() for check in checks.values()))
    return dict(zip(checks, results))


def _report(results: dict[str, CheckResult], *, ok_status: str, failed_status: str) -> JSONResponse:
    is_ok = all(result.get("status") == "ok" for result in results.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_status if is_ok else failed_status, "checks": results},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    results = await _run_checks(
        {
            "database": _check_database,
            "redis": _check_redis,
            "round_workers": _check_round_workers,
            "round_backlog": _check_round_backlog,
        }
    )
    return _report(results, ok_status="ok", failed_status="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    results = await _run_checks({"database": _check_database, "redis": _check_redis})
    return _report(results, ok_status="ready", failed_status="not_ready")
