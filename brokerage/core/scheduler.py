"""
APScheduler integration for FastAPI.

Runs the report batch in-process:
- Report batch: every hour at the configured minute, Asia/Tokyo time

Job executions are recorded in the job_runs table.
"""

from datetime import datetime
from typing import Any

from apscheduler import AsyncScheduler, ConflictPolicy, JobOutcome, JobReleased
from apscheduler.datastores.memory import MemoryDataStore
from apscheduler.triggers.cron import CronTrigger

from brokerage.config import get_config, get_settings
from brokerage.core.database import Database
from brokerage.core.datetime_utils import to_naive_utc, utc_now
from brokerage.core.logging import get_logger
from brokerage.models.job_run import JobRun
from brokerage.services.batch_service import process_batch_report_settings

logger = get_logger(__name__)

REPORT_BATCH_SCHEDULE_ID = "report_batch"


async def report_batch_job(database: Database) -> None:
    """Hourly report batch job - generates due reports and reschedules settings."""
    logger.info("scheduled_report_batch_started")
    try:
        result = await process_batch_report_settings(database)
        logger.bind(**result.as_dict()).info("scheduled_report_batch_completed")
    except Exception as e:
        logger.bind(error=str(e)).error("scheduled_report_batch_failed")
        raise  # Re-raise so APScheduler records the failure


class BatchScheduler:
    """Owns the in-process scheduler for one application instance."""

    def __init__(self, database: Database) -> None:
        self.database = database
        self.scheduler: AsyncScheduler | None = None

    async def start(self) -> bool:
        """Initialize and start the scheduler. Returns False if disabled."""
        settings = get_settings()
        config = get_config()
        if not settings.scheduler_enabled or not config.batch.enabled:
            logger.info("scheduler_disabled_by_config")
            return False

        # In-memory schedules: the cron trigger is re-registered on every start
        self.scheduler = AsyncScheduler(data_store=MemoryDataStore())

        # Start the scheduler first (required before calling other methods in APScheduler 4.x)
        await self.scheduler.__aenter__()
        self.scheduler.subscribe(self._on_job_released)

        await self.scheduler.add_schedule(
            report_batch_job,
            CronTrigger(minute=config.batch.cron_minute, timezone=settings.timezone),
            id=REPORT_BATCH_SCHEDULE_ID,
            kwargs={"database": self.database},
            conflict_policy=ConflictPolicy.replace,
        )

        await self.scheduler.start_in_background()

        logger.bind(
            jobs=[REPORT_BATCH_SCHEDULE_ID],
            minute=config.batch.cron_minute,
            timezone=settings.timezone,
        ).info("scheduler_started")
        return True

    async def stop(self) -> None:
        """Gracefully stop the scheduler."""
        if self.scheduler:
            await self.scheduler.__aexit__(None, None, None)
            logger.info("scheduler_stopped")
            self.scheduler = None

    async def get_schedules(self) -> list[dict[str, Any]]:
        """Get all registered job schedules."""
        if not self.scheduler:
            return []

        schedules = await self.scheduler.get_schedules()
        return [
            {
                "id": s.id,
                "task_id": s.task_id,
                "trigger": str(s.trigger),
                "next_fire_time": s.next_fire_time.isoformat() if s.next_fire_time else None,
                "last_fire_time": s.last_fire_time.isoformat() if s.last_fire_time else None,
            }
            for s in schedules
        ]

    async def record_job_result(
        self,
        job_id: str,
        scheduled_at: datetime,
        started_at: datetime,
        outcome: str,
        error: str | None = None,
    ) -> None:
        """Record job execution result to database."""
        async with self.database.session() as db:
            db.add(
                JobRun(
                    job_id=job_id,
                    scheduled_at=to_naive_utc(scheduled_at),
                    started_at=to_naive_utc(started_at),
                    finished_at=utc_now(),
                    outcome=outcome,
                    error=error,
                )
            )
            await db.commit()

    async def _on_job_released(self, event: Any) -> None:
        """Handle job completion events."""
        if not isinstance(event, JobReleased):
            return
        try:
            scheduled_at = getattr(event, "scheduled_start", None) or utc_now()
            started_at = getattr(event, "started_at", None) or utc_now()
            error = None
            if event.outcome == JobOutcome.error:
                error = getattr(event, "exception_message", None) or "unknown error"
            await self.record_job_result(
                job_id=event.schedule_id or "unknown",
                scheduled_at=scheduled_at,
                started_at=started_at,
                outcome=event.outcome.name,
                error=error,
            )
        except Exception as e:
            logger.bind(error=str(e)).error("failed_to_record_job_result")
