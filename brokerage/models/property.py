from datetime import date
from uuid import uuid4

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.models.base import Base, SoftDeleteMixin, TimestampMixin


class Property(Base, TimestampMixin, SoftDeleteMixin):
    """Property listed for sale by a tenant."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid4()))
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(500))
    price: Mapped[str | None] = mapped_column(String(50))
    sales_start_date: Mapped[date | None] = mapped_column(Date)

    def __repr__(self) -> str:
        return f"<Property {self.name}>"
