"""Periodic dashboard refresh and analysis-cache sweep.

Only handles scheduling; the work itself is delegated to the dashboard
service and the cache.
"""

from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from threadsense.core.cache import AnalysisCache
from threadsense.core.dashboard import DashboardService
from threadsense.logger import get_logger

logger = get_logger(__name__)


class RefreshScheduler:
    """Schedules dashboard refreshes and cache sweeps at fixed intervals."""

    def __init__(
        self,
        dashboard: DashboardService,
        cache: AnalysisCache,
        interval_minutes: int = 15,
    ) -> None:
        self._dashboard = dashboard
        self._cache = cache
        self._interval_minutes = interval_minutes
        self._scheduler = AsyncIOScheduler()

    def start(self) -> None:
        """Start the scheduler. The first refresh is manual; recurring runs are automatic."""
        first_refresh = datetime.now() + timedelta(minutes=self._interval_minutes)
        self._scheduler.add_job(
            self._dashboard.refresh,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id="threadsense_refresh",
            name="Dashboard refresh",
            next_run_time=first_refresh,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.add_job(
            self.sweep_cache,
            trigger=IntervalTrigger(seconds=self._cache.ttl_seconds),
            id="threadsense_cache_sweep",
            name="Analysis cache sweep",
        )
        self._scheduler.start()
        logger.info(
            "scheduler_started",
            refresh_minutes=self._interval_minutes,
            sweep_seconds=self._cache.ttl_seconds,
        )

    async def run_initial_refresh(self) -> None:
        logger.info("initial_refresh_triggered")
        await self._dashboard.refresh()

    def sweep_cache(self) -> int:
        removed = self._cache.sweep()
        if removed:
            logger.info("cache_swept", removed=removed, remaining=len(self._cache))
        return removed

    def stop(self) -> None:
        self._scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")
