"""Tenant-scoped store for batch report settings.

Settings are addressed by (client_id, created_at). Soft-deleted settings
are invisible to every read in this module and are never resurrected.
"""

from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from brokerage.config import get_config
from brokerage.core.datetime_utils import as_operational, operational_now, to_naive_utc, utc_now
from brokerage.core.logging import get_logger
from brokerage.models.base import not_deleted
from brokerage.models.batch_report_setting import AutoCreatePeriod, BatchReportSetting, BatchStatus
from brokerage.pipeline.schedule import (
    DEFAULT_WINDOW,
    BatchExecutionTarget,
    compute_initial_execution,
    compute_next_execution,
    select_due,
    select_overdue,
)
from brokerage.schemas.batch import BatchReportSettingCreate, BatchReportSettingUpdate

logger = get_logger(__name__)

# Changing any of these moves the first firing of a setting
_RESCHEDULING_FIELDS = {"start_date", "execution_time", "weekday"}


class BatchSettingError(Exception):
    """Base class for batch setting errors."""


class DuplicateBatchSettingError(BatchSettingError):
    """An active setting already exists for the property."""

    def __init__(self, client_id: str, property_id: str) -> None:
        super().__init__(f"duplicate active setting for property {property_id}")
        self.client_id = client_id
        self.property_id = property_id


class BatchSettingNotFoundError(BatchSettingError):
    """No live setting matches the lookup key."""


async def _has_active_setting(
    db: AsyncSession,
    client_id: str,
    property_id: str,
    exclude_id: str | None = None,
) -> bool:
    query = select(BatchReportSetting.id).where(
        BatchReportSetting.client_id == client_id,
        BatchReportSetting.property_id == property_id,
        BatchReportSetting.status == BatchStatus.ACTIVE,
        not_deleted(BatchReportSetting),
    )
    if exclude_id is not None:
        query = query.where(BatchReportSetting.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def create_setting(
    db: AsyncSession,
    client_id: str,
    employee_id: str,
    property_id: str,
    request: BatchReportSettingCreate,
    property_name: str = "",
    now: datetime | None = None,
) -> BatchReportSetting:
    """
    Create a recurring report setting for a property.

    Args:
        db: Database session
        client_id: Tenant owning the setting
        employee_id: Employee creating the setting
        property_id: Property the reports are about
        request: Validated configuration fields
        property_name: Cached property name
        now: Reference time for placing the first firing (defaults to now)

    Returns:
        The created setting

    Raises:
        DuplicateBatchSettingError: If an active, non-deleted setting exists
    """
    if await _has_active_setting(db, client_id, property_id):
        logger.bind(client_id=client_id, property_id=property_id).warning(
            "batch_setting_duplicate_rejected"
        )
        raise DuplicateBatchSettingError(client_id, property_id)

    execution_time = request.execution_time or get_config().batch.default_execution_time
    next_execution = compute_initial_execution(
        start_date=request.start_date,
        execution_time=execution_time,
        weekday=request.weekday,
        cadence=request.auto_create_period,
        now=now or operational_now(),
    )

    timestamp = utc_now()
    setting = BatchReportSetting(
        client_id=client_id,
        employee_id=employee_id,
        property_id=property_id,
        property_name=property_name,
        weekday=request.weekday,
        start_date=request.start_date,
        auto_create_period=request.auto_create_period,
        auto_generate=request.auto_generate,
        execution_time=execution_time,
        next_execution_date=to_naive_utc(next_execution),
        status=BatchStatus.ACTIVE,
        execution_count=0,
        created_at=timestamp,
        updated_at=timestamp,
    )
    db.add(setting)
    await db.flush()

    logger.bind(
        setting_id=setting.id,
        client_id=client_id,
        property_id=property_id,
        next_execution_date=next_execution.isoformat(),
    ).info("batch_setting_created")
    return setting


async def get_setting(
    db: AsyncSession,
    client_id: str,
    created_at: datetime,
) -> BatchReportSetting | None:
    """Get a live setting by its (client_id, created_at) key."""
    result = await db.execute(
        select(BatchReportSetting).where(
            BatchReportSetting.client_id == client_id,
            BatchReportSetting.created_at == created_at,
            not_deleted(BatchReportSetting),
        )
    )
    return result.scalar_one_or_none()


async def get_settings_by_tenant(db: AsyncSession, client_id: str) -> list[BatchReportSetting]:
    """Get all live settings of a tenant, newest first."""
    result = await db.execute(
        select(BatchReportSetting)
        .where(BatchReportSetting.client_id == client_id, not_deleted(BatchReportSetting))
        .order_by(BatchReportSetting.created_at.desc())
    )
    return list(result.scalars().all())


async def get_setting_by_property(
    db: AsyncSession,
    client_id: str,
    property_id: str,
) -> BatchReportSetting | None:
    """Get the most recently created live setting for a property."""
    result = await db.execute(
        select(BatchReportSetting)
        .where(
            BatchReportSetting.client_id == client_id,
            BatchReportSetting.property_id == property_id,
            not_deleted(BatchReportSetting),
        )
        .order_by(BatchReportSetting.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_setting(
    db: AsyncSession,
    client_id: str,
    created_at: datetime,
    changes: BatchReportSettingUpdate,
    now: datetime | None = None,
) -> BatchReportSetting:
    """
    Apply a partial update to a setting.

    The next execution is re-placed when the start date, execution time or
    weekday changes, and when a paused or completed setting is reactivated.

    Raises:
        BatchSettingNotFoundError: If no live setting matches the key
        DuplicateBatchSettingError: If reactivating while another setting for
            the property is active
    """
    setting = await get_setting(db, client_id, created_at)
    if setting is None:
        raise BatchSettingNotFoundError(f"batch setting not found: {client_id}/{created_at}")

    fields = changes.changes()
    reactivated = (
        fields.get("status") == BatchStatus.ACTIVE and setting.status != BatchStatus.ACTIVE
    )
    if reactivated and await _has_active_setting(
        db, client_id, setting.property_id, exclude_id=setting.id
    ):
        logger.bind(client_id=client_id, property_id=setting.property_id).warning(
            "batch_setting_reactivation_rejected"
        )
        raise DuplicateBatchSettingError(client_id, setting.property_id)

    for name, value in fields.items():
        setattr(setting, name, value)

    if reactivated or _RESCHEDULING_FIELDS & fields.keys():
        next_execution = compute_initial_execution(
            start_date=setting.start_date,
            execution_time=setting.execution_time,
            weekday=setting.weekday,
            cadence=setting.auto_create_period,
            now=now or operational_now(),
        )
        setting.next_execution_date = to_naive_utc(next_execution)

    setting.updated_at = utc_now()
    await db.flush()

    logger.bind(
        setting_id=setting.id,
        client_id=client_id,
        fields=sorted(fields),
    ).info("batch_setting_updated")
    return setting


async def soft_delete_setting(db: AsyncSession, client_id: str, created_at: datetime) -> None:
    """
    Hide a setting from all reads without removing it.

    Raises:
        BatchSettingNotFoundError: If no live setting matches the key
    """
    setting = await get_setting(db, client_id, created_at)
    if setting is None:
        raise BatchSettingNotFoundError(f"batch setting not found: {client_id}/{created_at}")

    timestamp = utc_now()
    setting.deleted_at = timestamp
    setting.updated_at = timestamp
    await db.flush()

    logger.bind(setting_id=setting.id, client_id=client_id).info("batch_setting_deleted")


async def get_due_settings(
    db: AsyncSession,
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
    catch_up: bool = True,
) -> list[BatchExecutionTarget]:
    """
    Find active settings due for execution at now.

    The regular path selects next executions in (now - window, now]. With
    catch_up, settings whose next execution is older than the window are
    returned as well (oldest first): they were never advanced, because their
    trigger was missed or their last attempt was skipped or failed. Without
    it the window's lower bound is applied in the query.

    Scans all tenants. Soft-deleted, paused and completed settings are
    never returned.
    """
    now = as_operational(now)
    query = select(BatchReportSetting).where(
        BatchReportSetting.status == BatchStatus.ACTIVE,
        BatchReportSetting.next_execution_date <= to_naive_utc(now),
        not_deleted(BatchReportSetting),
    )
    if not catch_up:
        query = query.where(BatchReportSetting.next_execution_date > to_naive_utc(now - window))

    result = await db.execute(query.order_by(BatchReportSetting.next_execution_date))
    targets = [BatchExecutionTarget.from_setting(s) for s in result.scalars().all()]

    due = select_due(targets, now, window)
    if not catch_up:
        return due

    overdue = select_overdue(targets, now, window)
    if overdue:
        logger.bind(
            count=len(overdue),
            oldest=overdue[0].next_execution_date.isoformat(),
        ).warning("batch_overdue_settings_selected")
    return overdue + due


async def advance_schedule(
    db: AsyncSession,
    client_id: str,
    created_at: datetime,
    weekday: int,
    cadence: AutoCreatePeriod,
    executed_at: datetime,
) -> bool:
    """
    Move a setting to its next firing after executed_at.

    The write only applies while the stored next execution still equals
    executed_at, so two cycles processing the same firing advance it once.

    Returns:
        True if the setting was advanced, False if it had already moved on
    """
    next_execution = compute_next_execution(weekday, cadence, executed_at)
    executed_naive = to_naive_utc(executed_at)

    result = await db.execute(
        update(BatchReportSetting)
        .where(
            BatchReportSetting.client_id == client_id,
            BatchReportSetting.created_at == created_at,
            BatchReportSetting.next_execution_date == executed_naive,
        )
        .values(
            next_execution_date=to_naive_utc(next_execution),
            last_execution_date=executed_naive,
            execution_count=BatchReportSetting.execution_count + 1,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    advanced = result.rowcount == 1

    log = logger.bind(
        client_id=client_id,
        executed_at=executed_at.isoformat(),
        next_execution_date=next_execution.isoformat(),
    )
    if advanced:
        log.info("batch_schedule_advanced")
    else:
        log.warning("batch_schedule_already_advanced")
    return advanced
