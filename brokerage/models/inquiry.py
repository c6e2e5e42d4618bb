from datetime import datetime
from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.models.base import Base, SoftDeleteMixin, TimestampMixin


class Inquiry(Base, TimestampMixin, SoftDeleteMixin):
    """Customer interaction about a property (email, call, viewing, ...)."""

    __tablename__ = "inquiries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid4()))
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    property_id: Mapped[str] = mapped_column(String(64), index=True)
    customer_id: Mapped[str | None] = mapped_column(String(64))
    customer_name: Mapped[str | None] = mapped_column(String(255))
    inquired_at: Mapped[datetime] = mapped_column(index=True)
    category: Mapped[str] = mapped_column(String(50), default="inquiry")
    type: Mapped[str] = mapped_column(String(50), default="email")
    title: Mapped[str | None] = mapped_column(String(255))
    summary: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Inquiry {self.property_id} at {self.inquired_at}>"
