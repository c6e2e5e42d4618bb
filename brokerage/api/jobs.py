"""Job monitoring and manual trigger endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select

from brokerage.dependencies import DatabaseHandle, DBSession, Scheduler, require_api_key
from brokerage.models.job_run import JobRun
from brokerage.services.batch_service import process_batch_report_settings

router = APIRouter()


class ScheduleResponse(BaseModel):
    """Response model for a job schedule."""

    id: str
    task_id: str
    trigger: str
    next_fire_time: str | None
    last_fire_time: str | None


class JobRunResponse(BaseModel):
    """Response model for a job run."""

    id: str
    job_id: str
    scheduled_at: datetime
    started_at: datetime
    finished_at: datetime
    duration_seconds: float
    outcome: str
    error: str | None


class BatchRunResponse(BaseModel):
    """Response model for a manually triggered batch cycle."""

    now: str
    due: int
    overdue: int
    outcomes: dict[str, int]


@router.get("/jobs/schedules", response_model=list[ScheduleResponse])
async def list_schedules(scheduler: Scheduler) -> list[ScheduleResponse]:
    """
    List all registered job schedules.

    Returns schedule information including next/last fire times.
    """
    if scheduler is None:
        return []
    schedules = await scheduler.get_schedules()
    return [ScheduleResponse(**s) for s in schedules]


@router.get("/jobs/runs", response_model=list[JobRunResponse])
async def list_job_runs(
    db: DBSession,
    job_id: str | None = Query(default=None, description="Filter by job ID"),
    limit: int = Query(default=50, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[JobRunResponse]:
    """
    List job execution history.

    Returns recent job runs with optional filtering by job ID.
    """
    query = select(JobRun).order_by(JobRun.scheduled_at.desc())

    if job_id:
        query = query.where(JobRun.job_id == job_id)

    query = query.offset(offset).limit(limit)
    result = await db.execute(query)
    runs = result.scalars().all()

    return [
        JobRunResponse(
            id=run.id,
            job_id=run.job_id,
            scheduled_at=run.scheduled_at,
            started_at=run.started_at,
            finished_at=run.finished_at,
            duration_seconds=(run.finished_at - run.started_at).total_seconds(),
            outcome=run.outcome,
            error=run.error,
        )
        for run in runs
    ]


@router.post(
    "/jobs/report-batch/run",
    response_model=BatchRunResponse,
    dependencies=[Depends(require_api_key)],
)
async def run_report_batch(database: DatabaseHandle) -> BatchRunResponse:
    """
    Run one report batch cycle now.

    Requires the X-API-Key header. Uses the same execution window as the
    scheduled job, so only settings due in the last window are processed.
    """
    result = await process_batch_report_settings(database)
    return BatchRunResponse(
        now=result.now.isoformat(),
        due=result.due,
        overdue=result.overdue,
        outcomes={o.value: n for o, n in result.outcomes.items()},
    )
