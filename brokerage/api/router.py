from fastapi import APIRouter

from brokerage.api.batch_settings import router as batch_settings_router
from brokerage.api.jobs import router as jobs_router

api_router = APIRouter()

# API routes at /api/*
api_router.include_router(batch_settings_router, prefix="/api", tags=["batch-reports"])
api_router.include_router(jobs_router, prefix="/api", tags=["jobs"])
