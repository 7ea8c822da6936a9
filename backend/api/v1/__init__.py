"""Version 1 API routers."""

from fastapi import APIRouter

from .notifications import router as notifications_router

api_router = APIRouter()
api_router.include_router(notifications_router)

__all__ = ["api_router"]
