"""
Report batch job.

Run with: python -m brokerage.jobs.report_batch

This job runs one batch cycle outside the scheduler:
1. Selects settings due in the trailing execution window
2. Creates reports for their periods
3. Advances each setting to its next firing
"""

import asyncio
from datetime import timedelta

from brokerage.config import get_settings
from brokerage.core.database import Database
from brokerage.core.logging import get_logger, setup_logging
from brokerage.services.batch_service import BatchCycleResult, process_batch_report_settings

logger = get_logger(__name__)


async def main(window_minutes: int | None = None) -> BatchCycleResult:
    """Run one report batch cycle manually."""
    logger.info("manual_report_batch_started")

    database = Database.from_url(get_settings().database_url)
    window = timedelta(minutes=window_minutes) if window_minutes else None
    try:
        result = await process_batch_report_settings(database, window=window)
        logger.bind(**result.as_dict()).info("manual_report_batch_completed")
        return result
    except Exception as e:
        logger.bind(error=str(e)).error("manual_report_batch_failed")
        raise
    finally:
        await database.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
