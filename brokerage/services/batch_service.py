"""Batch report orchestration.

One cycle selects every active setting whose next execution fell in the
trailing window, plus (with catch-up) older firings that were never
advanced, then processes each independently:

1. Compute the reporting period from the cadence and the firing instant
2. Fetch the period's inquiries and the property
3. Create a report when auto-generation is on and there were inquiries
4. Advance the setting to its next firing

A missing property skips steps 3 and 4, leaving the setting overdue so a
later cycle retries it. Errors in one setting never affect the others or
the cycle.
"""

import asyncio
import enum
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from openai import AsyncOpenAI

from brokerage.config import get_config, get_settings
from brokerage.core.database import Database
from brokerage.core.datetime_utils import operational_now
from brokerage.core.logging import get_logger
from brokerage.models.inquiry import Inquiry
from brokerage.models.property import Property
from brokerage.pipeline.schedule import BatchExecutionTarget, ReportPeriod, compute_report_period
from brokerage.schemas.report import CreateReportRequest, CustomerInteraction
from brokerage.services.batch_settings import advance_schedule, get_due_settings
from brokerage.services.inquiry_service import get_inquiries_for_period
from brokerage.services.property_service import get_property
from brokerage.services.report_service import create_report

logger = get_logger(__name__)


class BatchOutcome(str, enum.Enum):
    """Result of processing one setting in one cycle."""

    REPORT_CREATED = "report-created"
    SKIPPED_NO_DATA = "skipped-no-data"
    SKIPPED_NOT_GENERATING = "skipped-not-generating"
    PROPERTY_MISSING = "property-missing"
    FAILED = "failed"


@dataclass
class BatchCycleResult:
    """Summary of one orchestration cycle."""

    now: datetime
    due: int = 0
    overdue: int = 0
    outcomes: Counter = field(default_factory=Counter)

    def count(self, outcome: BatchOutcome) -> int:
        return self.outcomes[outcome]

    def as_dict(self) -> dict:
        return {
            "now": self.now.isoformat(),
            "due": self.due,
            "overdue": self.overdue,
            **{o.value: self.outcomes[o] for o in BatchOutcome},
        }


def build_report_request(
    target: BatchExecutionTarget,
    period: ReportPeriod,
    prop: Property,
    inquiries: list[Inquiry],
) -> CreateReportRequest:
    """Assemble the report payload for one firing."""
    return CreateReportRequest(
        property_id=target.property_id,
        property_name=target.property_name or prop.name or "",
        report_start_date=period.start_date,
        report_end_date=period.end_date,
        batch_setting_id=target.id,
        customer_interactions=[
            CustomerInteraction(
                customer_id=inquiry.customer_id,
                customer_name=inquiry.customer_name or "Unknown",
                inquired_at=inquiry.inquired_at,
                category=inquiry.category or "inquiry",
                type=inquiry.type or "email",
                title=inquiry.title or "Inquiry",
                summary=inquiry.summary or "",
            )
            for inquiry in inquiries
        ],
    )


async def process_single_batch(
    database: Database,
    target: BatchExecutionTarget,
    openai_client: AsyncOpenAI | None = None,
) -> BatchOutcome:
    """
    Process one due setting: report for its period, then reschedule.

    Args:
        database: Database handle (a dedicated session is opened)
        target: The due setting
        openai_client: Optional OpenAI client shared across the cycle

    Returns:
        The outcome tag for this setting
    """
    log = logger.bind(
        setting_id=target.id,
        client_id=target.client_id,
        property_id=target.property_id,
    )
    period = compute_report_period(target.auto_create_period, target.next_execution_date)
    log.bind(period=str(period)).info("batch_setting_processing")

    async with database.session() as db:
        inquiries = await get_inquiries_for_period(
            db,
            target.client_id,
            target.property_id,
            period.start_date,
            period.end_date,
        )

        prop = await get_property(db, target.client_id, target.property_id)
        if prop is None:
            # Left unscheduled so the next cycle retries it
            log.bind(outcome=BatchOutcome.PROPERTY_MISSING.value).warning("batch_property_missing")
            return BatchOutcome.PROPERTY_MISSING

        if not target.auto_generate:
            outcome = BatchOutcome.SKIPPED_NOT_GENERATING
        elif not inquiries:
            outcome = BatchOutcome.SKIPPED_NO_DATA
        else:
            request = build_report_request(target, period, prop, inquiries)
            report = await create_report(db, request, target.client_id, openai_client)
            await db.commit()
            log = log.bind(report_id=report.id)
            outcome = BatchOutcome.REPORT_CREATED

        await advance_schedule(
            db,
            target.client_id,
            target.created_at,
            target.weekday,
            target.auto_create_period,
            target.next_execution_date,
        )
        await db.commit()

    log.bind(outcome=outcome.value, inquiries=len(inquiries)).info("batch_setting_outcome")
    return outcome


def _default_openai_client() -> AsyncOpenAI | None:
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    return AsyncOpenAI(api_key=settings.openai_api_key)


async def process_batch_report_settings(
    database: Database,
    now: datetime | None = None,
    window: timedelta | None = None,
    max_concurrency: int | None = None,
    openai_client: AsyncOpenAI | None = None,
    catch_up: bool | None = None,
) -> BatchCycleResult:
    """
    Run one batch cycle.

    Args:
        database: Database handle
        now: Cycle reference time (defaults to the current operational time)
        window: Trailing execution window (defaults to config)
        max_concurrency: Settings processed at once (defaults to config)
        openai_client: Optional OpenAI client for report summaries
        catch_up: Also process settings left behind an earlier window
            (defaults to config)

    Returns:
        Per-outcome counts for the cycle

    Raises:
        Exception: Only if the due settings cannot be loaded
    """
    config = get_config().batch
    now = now or operational_now()
    window = window or timedelta(minutes=config.window_minutes)
    max_concurrency = max_concurrency or config.max_concurrency
    catch_up = config.catch_up if catch_up is None else catch_up

    logger.bind(now=now.isoformat(), window_minutes=window.total_seconds() / 60).info(
        "batch_cycle_started"
    )

    async with database.session() as db:
        due = await get_due_settings(db, now, window, catch_up=catch_up)

    result = BatchCycleResult(
        now=now,
        due=len(due),
        overdue=sum(1 for t in due if t.next_execution_date <= now - window),
    )
    if not due:
        logger.info("batch_cycle_no_due_settings")
        return result

    if openai_client is None:
        openai_client = _default_openai_client()

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def run_one(target: BatchExecutionTarget) -> BatchOutcome:
        async with semaphore:
            try:
                return await process_single_batch(database, target, openai_client)
            except Exception as e:
                logger.bind(
                    setting_id=target.id,
                    client_id=target.client_id,
                    property_id=target.property_id,
                    outcome=BatchOutcome.FAILED.value,
                    error=str(e),
                ).error("batch_setting_failed")
                return BatchOutcome.FAILED

    outcomes = await asyncio.gather(*(run_one(target) for target in due))
    result.outcomes.update(outcomes)

    logger.bind(**result.as_dict()).info("batch_cycle_completed")
    return result
