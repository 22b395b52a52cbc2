from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.db.session import dispose_engine

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("battle_royale_api_started")
    yield
    await dispose_engine()
    logger.info("battle_royale_api_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    resolved = settings or get_settings()
    configure_logging(resolved.log_level, json_logs=resolved.log_json)

    is_dev = resolved.app_env == "dev"
    application = FastAPI(
        title="Battle Royale Arena API",
        version="0.1.0",
        lifespan=_lifespan,
        docs_url="/docs" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
        redoc_url=None,
    )
    application.include_router(health_router)
    return application


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )
