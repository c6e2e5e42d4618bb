"""Property lookups used by the report pipeline and the settings API."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brokerage.models.base import not_deleted
from brokerage.models.property import Property


async def get_property(db: AsyncSession, client_id: str, property_id: str) -> Property | None:
    """Get a live property belonging to the tenant, or None."""
    result = await db.execute(
        select(Property).where(
            Property.id == property_id,
            Property.client_id == client_id,
            not_deleted(Property),
        )
    )
    return result.scalar_one_or_none()
