"""Main entry point for Kaio Planner."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from kaio.api.routes import get_store, router as api_router
from kaio.config import get_settings
from kaio.services.scheduler import RegenerationScheduler

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the regeneration scheduler alongside the API."""
    scheduler = RegenerationScheduler(get_store())
    scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        scheduler.stop()


api_app = FastAPI(
    title="Kaio Planner API",
    description="Weekly routine plans, checklist tracking, grocery list and history",
    version="1.0.0",
    lifespan=lifespan,
)
api_app.include_router(api_router)


def run():
    """Entry point for running the planner service."""
    configure_logging()
    settings = get_settings()
    logger.info("Starting Kaio Planner on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(api_app, host=settings.api_host, port=settings.api_port, log_level="warning")


if __name__ == "__main__":
    run()
