from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brokerage.core.datetime_utils import as_operational
from brokerage.models.batch_report_setting import AutoCreatePeriod, BatchStatus


def _normalize_execution_time(v: str | None) -> str | None:
    if v is None:
        return v
    parts = v.split(":")
    if len(parts) != 2:
        raise ValueError("execution_time must be HH:mm")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise ValueError("execution_time must be HH:mm") from e
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError("execution_time must be HH:mm")
    return f"{hour:02d}:{minute:02d}"


class BatchReportSettingCreate(BaseModel):
    """Request body for creating a batch report setting."""

    weekday: int = Field(ge=0, le=6, description="0=Sunday ... 6=Saturday")
    start_date: date
    auto_create_period: AutoCreatePeriod
    auto_generate: bool = True
    execution_time: str | None = Field(default=None, max_length=5)

    @field_validator("execution_time")
    @classmethod
    def validate_execution_time(cls, v: str | None) -> str | None:
        return _normalize_execution_time(v)


class BatchReportSettingUpdate(BaseModel):
    """Partial update of a batch report setting.

    Only fields explicitly present in the request are applied; scheduling
    state (next/last execution, execution count) is not writable here.
    """

    model_config = ConfigDict(extra="forbid")

    weekday: int | None = Field(default=None, ge=0, le=6)
    start_date: date | None = None
    auto_create_period: AutoCreatePeriod | None = None
    auto_generate: bool | None = None
    execution_time: str | None = Field(default=None, max_length=5)
    status: BatchStatus | None = None

    @field_validator("execution_time")
    @classmethod
    def validate_execution_time(cls, v: str | None) -> str | None:
        return _normalize_execution_time(v)

    def changes(self) -> dict:
        """Fields set by the caller, excluding explicit nulls."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class BatchReportSettingResponse(BaseModel):
    """Batch report setting as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    property_id: str
    property_name: str
    weekday: int
    start_date: date
    auto_create_period: AutoCreatePeriod
    auto_generate: bool
    execution_time: str
    next_execution_date: datetime
    status: BatchStatus
    last_execution_date: datetime | None = None
    execution_count: int
    employee_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("next_execution_date", "last_execution_date", "created_at", "updated_at")
    @classmethod
    def to_operational(cls, v: datetime | None) -> datetime | None:
        # Stored as naive UTC; expose as aware operational time
        if v is None:
            return v
        return as_operational(v)
