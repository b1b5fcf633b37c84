"""API routers."""

from fastapi import APIRouter

from .health import router as health_router
from .orchestration import router as orchestration_router

router = APIRouter()
router.include_router(health_router)
router.include_router(orchestration_router, prefix="/v1")

__all__ = ["router"]
