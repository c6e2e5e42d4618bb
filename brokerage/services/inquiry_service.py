"""Inquiry queries for report generation."""

from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brokerage.core.datetime_utils import operational_tz, to_naive_utc
from brokerage.models.base import not_deleted
from brokerage.models.inquiry import Inquiry


def _day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Naive UTC bounds [start 00:00, day after end 00:00) in operational time."""
    tz = operational_tz()
    lower = datetime.combine(start_date, time.min, tzinfo=tz)
    upper = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=tz)
    return to_naive_utc(lower), to_naive_utc(upper)


async def get_inquiries_for_period(
    db: AsyncSession,
    client_id: str,
    property_id: str,
    start_date: date,
    end_date: date,
) -> list[Inquiry]:
    """
    Get a property's inquiries received between two calendar dates.

    Both dates are inclusive and interpreted in the operational timezone.

    Args:
        db: Database session
        client_id: Tenant owning the property
        property_id: Property to query
        start_date: First day of the period
        end_date: Last day of the period

    Returns:
        Live inquiries ordered oldest first
    """
    lower, upper = _day_bounds(start_date, end_date)
    result = await db.execute(
        select(Inquiry)
        .where(
            Inquiry.client_id == client_id,
            Inquiry.property_id == property_id,
            Inquiry.inquired_at >= lower,
            Inquiry.inquired_at < upper,
            not_deleted(Inquiry),
        )
        .order_by(Inquiry.inquired_at)
    )
    return list(result.scalars().all())
