"""housekeeping-sync - optimistic task board for hotel housekeeping."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from housekeeping_sync.core.config import settings
from housekeeping_sync.core.logging import configure_logfire, instrument_fastapi
from housekeeping_sync.interface.board_router import router as board_router
from housekeeping_sync.interface.task_gateway import TaskGateway
from housekeeping_sync.services.task_board import TaskBoard


logger = logging.getLogger(__name__)


def validate_startup() -> None:
    """Fail fast when the remote task API is not configured.

    Raises:
        ValueError: If the task API base URL is missing
    """
    try:
        settings.require_credential("api_base_url", "Task API base URL")
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        raise
    logger.info("startup_validation", extra={"stage": "credentials", "status": "ok"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    configure_logfire()
    validate_startup()

    gateway = TaskGateway()
    app.state.board = TaskBoard(gateway)
    logger.info("startup_complete")
    yield
    await app.state.board.close()
    await gateway.aclose()
    logger.info("shutdown_complete")


app = FastAPI(
    title="housekeeping-sync",
    description="Optimistic housekeeping task board over the remote task API",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(board_router)


@app.get("/health")
async def health_check() -> dict:
    """Report cache health and in-flight mutations."""
    board: TaskBoard | None = getattr(app.state, "board", None)
    if board is None:
        return {"status": "starting"}
    return {
        "status": "ok",
        "cache": board.cache.get_health_status(),
        "busy_tasks": sorted(board.guard.busy_ids),
    }
