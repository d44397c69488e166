"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import health, uploads

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
