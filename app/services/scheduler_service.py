import logging
from datetime import datetime
from typing import List, Dict, Any, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.triggers.interval import IntervalTrigger

from .sweeper_service import SweepOutcome, TournamentSweeper
from ..utils.time_utils import utc_now

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = 'tournament_sweep'


class SchedulerService:
    """Runs the due-tournament sweep on a fixed interval and records each run."""

    def __init__(self, sweeper: TournamentSweeper, interval_seconds: int = 30):
        self.sweeper = sweeper
        self.interval_seconds = interval_seconds
        self.scheduler = None
        self.last_run_at: Optional[datetime] = None
        self.last_outcomes: List[SweepOutcome] = []
        self.last_error: Optional[str] = None
        self._initialize_scheduler()

    def _initialize_scheduler(self):
        """Initialize the APScheduler instance."""
        jobstores = {
            'default': MemoryJobStore(),
        }
        # Sweeps share the event loop (and scoring locks) with request handlers
        executors = {
            'default': AsyncIOExecutor(),
        }
        job_defaults = {
            'coalesce': True,
            'max_instances': 1
        }

        self.scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults
        )
        logger.info("Scheduler service initialized")

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def start(self):
        """Start the scheduler. Must be called from a running event loop."""
        if self.scheduler and not self.scheduler.running:
            self.scheduler.start()
            self._setup_recurring_jobs()
            logger.info("Scheduler service started")

    def shutdown(self):
        """Shutdown the scheduler."""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler service stopped")

    def _setup_recurring_jobs(self):
        self.scheduler.add_job(
            func=self._run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            name='Score Due Tournaments',
            replace_existing=True
        )
        logger.info(f"Tournament sweep scheduled every {self.interval_seconds}s")

    async def run_now(self) -> List[SweepOutcome]:
        """Run one sweep immediately, without waiting for the interval."""
        outcomes = await self.sweeper.run_once()
        self.last_run_at = utc_now()
        self.last_outcomes = outcomes
        self.last_error = None
        return outcomes

    async def _run_sweep(self):
        try:
            outcomes = await self.run_now()
            if outcomes:
                logger.info(f"Auto-scored tournaments: {[o.to_dict() for o in outcomes]}")
        except Exception as e:
            self.last_run_at = utc_now()
            self.last_error = str(e)
            logger.error(f"Auto-scoring failed: {e}", exc_info=True)

    def get_status(self) -> Dict[str, Any]:
        """Scheduler state and the most recent sweep, for the health endpoint."""
        job = self.scheduler.get_job(SWEEP_JOB_ID) if self.scheduler else None
        return {
            "status": "running" if self.running else "stopped",
            "interval_seconds": self.interval_seconds,
            "next_run_time": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_outcomes": [o.to_dict() for o in self.last_outcomes],
            "last_error": self.last_error,
        }
