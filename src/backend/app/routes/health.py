"""
Health check endpoint handler.
"""

from fastapi import APIRouter, Depends

from core.config import settings
from core.database import check_database
from core.dependencies import get_attachment_storage
from services.minio_service import AttachmentStorage

router = APIRouter()


@router.get("/health")
async def health_check(storage: AttachmentStorage = Depends(get_attachment_storage)):
    """
    Health check endpoint for monitoring.
    Checks database connectivity and MinIO bucket access.
    """
    health_status = {
        "status": "healthy",
        "services": {}
    }

    database_healthy = await check_database()
    health_status["services"]["database"] = {
        "status": "healthy" if database_healthy else "unhealthy",
    }
    if not database_healthy:
        health_status["status"] = "unhealthy"

    if storage.enabled:
        minio_healthy = await storage.health_check()
        health_status["services"]["minio"] = {
            "status": "healthy" if minio_healthy else "unhealthy",
            "bucket": settings.minio.bucket_name,
            "endpoint": settings.minio.endpoint,
        }
        if not minio_healthy and health_status["status"] == "healthy":
            health_status["status"] = "degraded"
    else:
        health_status["services"]["minio"] = {"status": "disabled"}

    return health_status
