from __future__ import annotations

import asyncio
import re

import asyncpg
import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import get_settings
from app.core.integration_db_safety import assert_safe_integration_db
from app.core.logging import configure_logging
from app.db.models import Base

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

logger = structlog.get_logger("scripts.ensure_test_db")


def _validate_identifier(db_name: str) -> None:
    if IDENTIFIER_RE.fullmatch(db_name) is None:
        raise RuntimeError(
            f"Unsupported database name '{db_name}'. "
            "Only [A-Za-z0-9_] identifiers are supported."
        )


async def _ensure_database_exists(database_url: str) -> bool:
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")
    _validate_identifier(db_name)

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=int(parsed.port or 5432),
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name):
            return False
        await conn.execute(f'CREATE DATABASE "{db_name}"')
        return True
    finally:
        await conn.close()


async def _ensure_schema(database_url: str) -> None:
    engine = create_async_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def ensure_test_db(database_url: str) -> None:
    assert_safe_integration_db(database_url)
    created = await _ensure_database_exists(database_url)
    await _ensure_schema(database_url)
    logger.info(
        "ensure_test_db_ready",
        database=make_url(database_url).database,
        created=created,
        tables=sorted(Base.metadata.tables),
    )


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=False)
    asyncio.run(ensure_test_db(settings.database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
