"""Pure scheduling logic for recurring batch reports.

All functions are side-effect free. Datetimes are aware; calendar
decisions (dates, weekdays) are taken in the operational timezone.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from brokerage.core.datetime_utils import (
    as_operational,
    operational_tz,
    parse_execution_time,
    sunday_weekday,
)
from brokerage.models.batch_report_setting import AutoCreatePeriod, BatchReportSetting

DEFAULT_WINDOW = timedelta(hours=1)

_CADENCE_DAYS = {
    AutoCreatePeriod.ONE_WEEK: 7,
    AutoCreatePeriod.TWO_WEEKS: 14,
}


@dataclass(frozen=True)
class BatchExecutionTarget:
    """Read-only projection of a batch setting selected for execution."""

    id: str
    client_id: str
    created_at: datetime  # Lookup key, stored value (naive UTC)
    property_id: str
    property_name: str
    weekday: int
    start_date: date
    auto_create_period: AutoCreatePeriod
    auto_generate: bool
    execution_time: str
    next_execution_date: datetime  # Aware, operational timezone
    execution_count: int
    employee_id: str

    @classmethod
    def from_setting(cls, setting: BatchReportSetting) -> "BatchExecutionTarget":
        return cls(
            id=setting.id,
            client_id=setting.client_id,
            created_at=setting.created_at,
            property_id=setting.property_id,
            property_name=setting.property_name or "",
            weekday=setting.weekday,
            start_date=setting.start_date,
            auto_create_period=setting.auto_create_period,
            auto_generate=setting.auto_generate,
            execution_time=setting.execution_time,
            next_execution_date=as_operational(setting.next_execution_date),
            execution_count=setting.execution_count,
            employee_id=setting.employee_id,
        )


@dataclass(frozen=True)
class ReportPeriod:
    """Calendar date range summarized by one report (both ends inclusive)."""

    start_date: date
    end_date: date

    def __str__(self) -> str:
        return f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"


def cadence_days(cadence: AutoCreatePeriod | str) -> int:
    """
    Number of days between two firings of a cadence.

    Raises:
        ValueError: If cadence is not one of the known literal values
    """
    return _CADENCE_DAYS[AutoCreatePeriod(cadence)]


def select_due(
    targets: Iterable[BatchExecutionTarget],
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
) -> list[BatchExecutionTarget]:
    """
    Select targets whose next execution falls in the trailing window.

    The window is half-open: (now - window, now]. A target sitting exactly
    on the lower bound was due in the previous cycle and is excluded.
    """
    lower = now - window
    return [t for t in targets if lower < t.next_execution_date <= now]


def select_overdue(
    targets: Iterable[BatchExecutionTarget],
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
) -> list[BatchExecutionTarget]:
    """
    Select targets whose next execution fell before the trailing window.

    A processed firing always moves next_execution_date past it, so a
    target still sitting at or below now - window was skipped (missed
    trigger, missing property, failure) and is picked up again here.
    """
    lower = now - window
    return [t for t in targets if t.next_execution_date <= lower]


def compute_report_period(cadence: AutoCreatePeriod | str, executed_at: datetime) -> ReportPeriod:
    """
    Derive the reporting period for one firing.

    The period ends on the execution date and starts 7 or 14 days earlier.
    """
    end_date = as_operational(executed_at).date()
    return ReportPeriod(
        start_date=end_date - timedelta(days=cadence_days(cadence)),
        end_date=end_date,
    )


def _align_weekday(day: date, weekday: int) -> date:
    """Move day by the minimal signed offset so it falls on weekday (0=Sunday)."""
    diff = (weekday - sunday_weekday(day)) % 7
    if diff > 3:
        diff -= 7
    return day + timedelta(days=diff)


def compute_next_execution(
    weekday: int,
    cadence: AutoCreatePeriod | str,
    executed_at: datetime,
) -> datetime:
    """
    Compute the firing instant following executed_at.

    Adds one cadence step, then shifts to the configured weekday by the
    smallest signed number of days. The time of day is carried over.

    Returns:
        Aware datetime in the operational timezone
    """
    local = as_operational(executed_at)
    next_day = _align_weekday(local.date() + timedelta(days=cadence_days(cadence)), weekday)
    return datetime.combine(next_day, local.time(), tzinfo=operational_tz())


def compute_initial_execution(
    start_date: date,
    execution_time: str,
    weekday: int,
    cadence: AutoCreatePeriod | str,
    now: datetime | None = None,
) -> datetime:
    """
    Place the first firing of a new or reconfigured setting.

    Uses the first date on or after start_date falling on weekday, at
    execution_time. When now is given and that instant is not in the future,
    it is rolled forward by whole cadence steps so the setting lands in a
    future execution window.

    Raises:
        ValueError: If execution_time or cadence is invalid
    """
    at = parse_execution_time(execution_time)
    first_day = start_date + timedelta(days=(weekday - sunday_weekday(start_date)) % 7)
    candidate = datetime.combine(first_day, at, tzinfo=operational_tz())

    if now is not None and candidate <= now:
        step = timedelta(days=cadence_days(cadence))
        missed_steps = (now - candidate) // step + 1
        candidate = datetime.combine(
            first_day + step * missed_steps, at, tzinfo=operational_tz()
        )

    return candidate
