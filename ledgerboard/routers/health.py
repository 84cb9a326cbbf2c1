"""
Health Check Router
Simple health check endpoint
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ledgerboard.container import Container
from ledgerboard.routers.deps import get_container

router = APIRouter()


@router.get("/health")
async def health_check(container: Container = Depends(get_container)):
    """
    Health check endpoint.
    Returns API status and the active storage backend.
    """
    return {
        "status": "healthy",
        "service": container.settings.PROJECT_NAME,
        "storage": container.storage.name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
