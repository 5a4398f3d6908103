from fastapi import APIRouter

from publisphere.interfaces.api.health import router as health_router
from publisphere.interfaces.api.jobs import router as jobs_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(jobs_router)
