from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from time import monotonic
from typing import TypeVar

import structlog

from app.db.session import dispose_engine

T = TypeVar("T")

logger = structlog.get_logger(__name__)


async def _run_with_fresh_db_pool(awaitable: Awaitable[T], *, job_name: str) -> T:
    await dispose_engine()
    started_at = monotonic()
    try:
        return await awaitable
    except Exception:
        logger.exception(
            "worker_async_job_failed",
            job_name=job_name,
            duration_ms=int((monotonic() - started_at) * 1000),
        )
        raise
    finally:
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str = "async_job") -> T:
    return asyncio.run(_run_with_fresh_db_pool(awaitable, job_name=job_name))
