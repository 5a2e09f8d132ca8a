"""
API v1 routers
"""

from fastapi import APIRouter

from .categories import router as categories_router
from .health import router as health_router

api_router = APIRouter()

# Include routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
