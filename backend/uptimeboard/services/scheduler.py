"""Scheduler service - periodic ingestion and retention jobs.

Two independent APScheduler interval jobs:
- ingestion: probe every target concurrently and append one row per target
- retention: delete rows older than the retention window

Both fire once immediately at start, then at a fixed interval. Missed runs
are coalesced; there is no jitter and no backoff.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..exceptions import StorageError
from ..utils.time import utc_now
from .history import HistoryStore
from .prober import DEFAULT_TIMEOUT_SECONDS, Prober, ProbeResult, Status
from .registry import Target, TargetRegistry

logger = logging.getLogger(__name__)

INGESTION_JOB_ID = "probe_targets"
RETENTION_JOB_ID = "prune_history"


@dataclass(frozen=True)
class SchedulerConfig:
    """Intervals for the background jobs. retention_window=None disables pruning."""
    ingestion_interval: timedelta = timedelta(seconds=60)
    retention_interval: timedelta = timedelta(minutes=5)
    retention_window: Optional[timedelta] = None
    probe_timeout: float = DEFAULT_TIMEOUT_SECONDS


class SchedulerService:
    """Runs the ingestion and retention jobs for one registry."""

    def __init__(
        self,
        registry: TargetRegistry,
        prober: Prober,
        store: HistoryStore,
        config: SchedulerConfig,
    ):
        self.registry = registry
        self.prober = prober
        self.store = store
        self.config = config
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler. Must be called from a running event loop."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        now = utc_now()

        self.scheduler.add_job(
            self.run_ingestion_tick,
            trigger=IntervalTrigger(seconds=self.config.ingestion_interval.total_seconds()),
            id=INGESTION_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=now,
        )

        if self.config.retention_window is not None:
            self.scheduler.add_job(
                self.run_retention_tick,
                trigger=IntervalTrigger(seconds=self.config.retention_interval.total_seconds()),
                id=RETENTION_JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                next_run_time=now,
            )
        else:
            logger.info("Retention disabled, history is kept indefinitely")

        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (targets={len(self.registry)}, "
            f"interval={self.config.ingestion_interval.total_seconds():g}s)"
        )

    def stop(self):
        """Stop the scheduler. In-flight probes finish on their own timeout."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def run_ingestion_tick(self) -> list[ProbeResult]:
        """Probe every target once and record each outcome."""
        targets = list(self.registry)
        if not targets:
            return []
        results = await asyncio.gather(*[self._probe_and_record(t) for t in targets])
        up = sum(1 for r in results if r.status == Status.UP)
        logger.debug(f"Ingestion tick: {up}/{len(results)} targets up")
        return list(results)

    async def _probe_and_record(self, target: Target) -> ProbeResult:
        result = await self.prober.probe(target, timeout=self.config.probe_timeout)
        try:
            await self.store.append(result)
        except StorageError as e:
            logger.error(f"Could not record result for {target.name}: {e}")
        return result

    async def run_retention_tick(self, now: Optional[datetime] = None) -> int:
        """Delete rows older than the retention window. Returns the count deleted."""
        if self.config.retention_window is None:
            return 0
        cutoff = (now or utc_now()) - self.config.retention_window
        try:
            deleted = await self.store.prune(cutoff)
        except StorageError as e:
            logger.error(f"Error pruning history: {e}")
            return 0
        logger.info(f"Pruned {deleted} history rows older than {cutoff.isoformat()}")
        return deleted
