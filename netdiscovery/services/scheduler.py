"""
Scheduler Service.

Runs periodic maintenance jobs with APScheduler. Currently one job: the
idle-session sweep of the SNMP session registry.
"""
from __future__ import annotations

import logging
import time as _time
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from netdiscovery.snmp.session_registry import SnmpSessionRegistry

logger = logging.getLogger(__name__)

SESSION_REAPER_JOB = "session_reaper"


class SchedulerService:
    """
    Scheduler for background maintenance jobs.

    Jobs never overlap with themselves (max_instances=1) and missed runs
    are coalesced into one.
    """

    def __init__(self) -> None:
        """Initialize scheduler."""
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": 30,
            },
        )
        self._jobs: dict[str, str] = {}  # job_name -> job_id

    def add_session_reaper_job(
        self,
        registry: SnmpSessionRegistry,
        interval_seconds: int,
    ) -> str:
        """
        Sweep idle SNMP sessions every ``interval_seconds``.

        Returns:
            str: Job ID
        """
        if SESSION_REAPER_JOB in self._jobs:
            self.remove_job(SESSION_REAPER_JOB)

        job = self.scheduler.add_job(
            self._run_session_reaper,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=SESSION_REAPER_JOB,
            kwargs={"registry": registry},
            replace_existing=True,
        )
        self._jobs[SESSION_REAPER_JOB] = job.id
        logger.info(
            "Added session reaper job every %ds (idle TTL %s)",
            interval_seconds, registry.idle_ttl,
        )
        return job.id

    def remove_job(self, job_name: str) -> bool:
        """Remove a scheduled job."""
        job_id = self._jobs.get(job_name)
        if job_id:
            self.scheduler.remove_job(job_id)
            del self._jobs[job_name]
            logger.info("Removed job '%s'", job_name)
            return True
        return False

    def get_jobs(self) -> list[dict[str, Any]]:
        """Get list of all scheduled jobs."""
        return [
            {
                "id": job.id,
                "name": job.name,
                # Pending jobs (scheduler not started) have no next run yet
                "next_run": str(getattr(job, "next_run_time", None)),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    # ── Internal ─────────────────────────────────────────────────

    async def _run_session_reaper(self, registry: SnmpSessionRegistry) -> None:
        t0 = _time.monotonic()
        try:
            evicted = await registry.reap_idle()
        except Exception as e:
            logger.error("Session reaper failed: %s", e)
            return
        if evicted:
            logger.info(
                "Session reaper closed %d idle sessions in %.2fs (%d remaining)",
                len(evicted), _time.monotonic() - t0, registry.count(),
            )

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self) -> None:
        """Start the scheduler."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler, waiting for running jobs to finish."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self.scheduler.running


# ── Singleton ────────────────────────────────────────────────────

_scheduler_service: SchedulerService | None = None


def get_scheduler_service() -> SchedulerService:
    """Get or create SchedulerService instance."""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service


def setup_scheduled_jobs(registry: SnmpSessionRegistry, sweep_interval: int) -> None:
    """Register every background job on the shared scheduler."""
    scheduler = get_scheduler_service()
    scheduler.add_session_reaper_job(registry, sweep_interval)
