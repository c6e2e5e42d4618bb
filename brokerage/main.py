from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from brokerage.api.router import api_router
from brokerage.config import get_settings
from brokerage.core.database import Database
from brokerage.core.logging import setup_logging
from brokerage.core.scheduler import BatchScheduler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    setup_logging()
    database = Database.from_url(settings.database_url, echo=settings.debug)
    app.state.database = database
    scheduler = BatchScheduler(database)
    if await scheduler.start():
        app.state.scheduler = scheduler
    yield
    # Shutdown
    await scheduler.stop()
    await database.dispose()


app = FastAPI(
    title="Sales Brokerage",
    description="Recurring sales-status reports for brokered properties",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# Include API routes
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers."""
    return {"status": "healthy"}
