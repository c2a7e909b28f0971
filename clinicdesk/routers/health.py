"""Health check endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from clinicdesk import __version__
from clinicdesk.config import settings
from clinicdesk.core.logging import logger
from clinicdesk.database import Database

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness: the process is up."""
    return {
        "status": "healthy",
        "service": "clinicdesk",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness: the engine is built and the storage backend answers.

    Returns 503 while starting up or when MongoDB cannot be reached.
    """
    if Database.engine is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "starting", "storage": settings.STORAGE_BACKEND},
        )

    if Database.client is not None:
        try:
            await Database.client.admin.command("ping")
        except PyMongoError as e:
            logger.warning(f"Readiness ping failed: {e}")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable", "storage": settings.STORAGE_BACKEND},
            )

    return {"status": "ready", "storage": settings.STORAGE_BACKEND}
