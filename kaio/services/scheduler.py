"""APScheduler polling for automatic weekly plan regeneration."""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from kaio.config import get_settings
from kaio.errors import PlanGenerationError
from kaio.models.state import SchedulerConfig
from kaio.services.calendar import last_scheduled_occurrence

logger = logging.getLogger(__name__)


def is_stale(config: SchedulerConfig, now: datetime) -> bool:
    """Whether a scheduled regeneration slot has passed since the last generation.

    Without goals or a previous generation there is nothing to regenerate.
    Once ``last_generated`` moves past the slot, the same slot never fires
    again, so polling is idempotent.
    """
    if not config.goals or config.last_generated is None:
        return False

    scheduled = last_scheduled_occurrence(now, config.auto_regenerate_day, config.auto_regenerate_time)
    return config.last_generated < scheduled <= now


class RegenerationScheduler:
    """Polls the store and regenerates its weekly plan when it goes stale."""

    JOB_ID = "regenerate_weekly_plan"

    def __init__(self, store, interval_seconds: Optional[int] = None):
        self.settings = get_settings()
        self.store = store
        self.interval_seconds = interval_seconds or self.settings.poll_interval_seconds
        self.scheduler = AsyncIOScheduler(timezone=self.settings.timezone)

    def start(self) -> None:
        """Start polling; the first check runs immediately."""
        self.scheduler.add_job(
            self.poll,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            next_run_time=datetime.now(self.scheduler.timezone),
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Regeneration scheduler started (every %ss)", self.interval_seconds)

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Regeneration scheduler stopped")

    async def poll(self) -> bool:
        """Run one staleness check; returns True when a new plan was installed."""
        if not self.store.check_and_regenerate_plan():
            return False
        try:
            return await self.store.regenerate_weekly_plan()
        except PlanGenerationError as e:
            logger.error("Regeneration failed, will retry on next poll: %s", e)
            return False
