from datetime import date
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.models.base import Base, SoftDeleteMixin, TimestampMixin


class Report(Base, TimestampMixin, SoftDeleteMixin):
    """Sales-status report sent to a property owner."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    property_id: Mapped[str] = mapped_column(String(64), index=True)
    batch_setting_id: Mapped[str | None] = mapped_column(String(36), index=True)

    title: Mapped[str] = mapped_column(String(255))
    report_start_date: Mapped[date] = mapped_column(Date)
    report_end_date: Mapped[date] = mapped_column(Date)
    summary: Mapped[str | None] = mapped_column(Text)
    current_status: Mapped[str | None] = mapped_column(String(50))
    inquiries_count: Mapped[int] = mapped_column(Integer, default=0)
    customer_interactions: Mapped[list] = mapped_column(JSON, default=list)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Report {self.property_id} {self.report_start_date}..{self.report_end_date}>"
