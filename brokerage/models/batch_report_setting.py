"""Recurring sales-status report configuration, one per (tenant, property)."""

import enum
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import Boolean, Date, Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.models.base import Base, SoftDeleteMixin, TimestampMixin


class AutoCreatePeriod(str, enum.Enum):
    """Cadence at which a report is generated."""

    ONE_WEEK = "every 1 week"
    TWO_WEEKS = "every 2 weeks"


class BatchStatus(str, enum.Enum):
    """Lifecycle state of a batch setting."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class BatchReportSetting(Base, TimestampMixin, SoftDeleteMixin):
    """Per-property recurring report schedule.

    Rows are addressed by (client_id, created_at). The batch orchestrator owns
    next_execution_date, last_execution_date and execution_count; every other
    field is owned by the configuration API.
    """

    __tablename__ = "batch_report_settings"
    __table_args__ = (
        UniqueConstraint("client_id", "created_at", name="uq_batch_setting_client_created"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    employee_id: Mapped[str] = mapped_column(String(64))

    property_id: Mapped[str] = mapped_column(String(64), index=True)
    property_name: Mapped[str] = mapped_column(String(255), default="")  # May be stale
    weekday: Mapped[int] = mapped_column(Integer)  # 0=Sunday ... 6=Saturday
    start_date: Mapped[date] = mapped_column(Date)
    auto_create_period: Mapped[AutoCreatePeriod] = mapped_column(
        Enum(
            AutoCreatePeriod,
            values_callable=lambda e: [x.value for x in e],
            name="autocreateperiod",
            create_type=False,
        )
    )
    auto_generate: Mapped[bool] = mapped_column(Boolean, default=True)
    execution_time: Mapped[str] = mapped_column(String(5), default="01:00")

    # Scheduling state (naive UTC)
    next_execution_date: Mapped[datetime] = mapped_column(index=True)
    status: Mapped[BatchStatus] = mapped_column(
        Enum(
            BatchStatus,
            values_callable=lambda e: [x.value for x in e],
            name="batchstatus",
            create_type=False,
        ),
        default=BatchStatus.ACTIVE,
        index=True,
    )
    last_execution_date: Mapped[datetime | None] = mapped_column(default=None)
    execution_count: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<BatchReportSetting {self.client_id}/{self.property_id} {self.status.value}>"
