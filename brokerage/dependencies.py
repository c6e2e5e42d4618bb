import hmac
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from brokerage.config import AppConfig, Settings, get_config, get_settings
from brokerage.core.database import Database, get_db
from brokerage.core.scheduler import BatchScheduler

# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Config = Annotated[AppConfig, Depends(get_config)]


@dataclass(frozen=True)
class TenantContext:
    """Tenant and employee identity of the caller."""

    client_id: str
    employee_id: str


async def get_tenant(
    x_client_id: str | None = Header(default=None),
    x_employee_id: str | None = Header(default=None),
) -> TenantContext:
    """Read the tenant context set by the authenticating gateway."""
    if not x_client_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Client ID is required",
        )
    return TenantContext(client_id=x_client_id, employee_id=x_employee_id or "")


def get_database(request: Request) -> Database:
    """Get the process-wide database handle."""
    database: Database = request.app.state.database
    return database


def get_batch_scheduler(request: Request) -> BatchScheduler | None:
    """Get the running batch scheduler, if any."""
    return getattr(request.app.state, "scheduler", None)


async def require_api_key(
    settings: AppSettings,
    x_api_key: str | None = Header(default=None),
) -> None:
    """Guard operational endpoints with the shared API key."""
    if not settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key not configured",
        )
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


Tenant = Annotated[TenantContext, Depends(get_tenant)]
DatabaseHandle = Annotated[Database, Depends(get_database)]
Scheduler = Annotated[BatchScheduler | None, Depends(get_batch_scheduler)]
