"""Health check endpoint for monitoring application status."""

from datetime import datetime
from datetime import timezone

from fastapi import APIRouter
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

from fleetshare.workflow import __version__

ROUTER_HEALTH = APIRouter(tags=["Health"])


@ROUTER_HEALTH.get(
    "/health",
    summary="Health check endpoint",
    description="Basic health check that returns application status and metadata",
    responses={
        status.HTTP_200_OK: {
            "description": "Application is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2026-01-05T12:00:00.000000Z",
                        "service": "Fleet Device Share API",
                        "version": "1.0.0",
                        "store_server": "my.geotab.com",
                    }
                }
            },
        }
    },
)
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Does not authenticate against any database, so it stays cheap enough
    for liveness probes.
    """
    settings = request.app.state.settings

    response_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Fleet Device Share API",
        "version": __version__,
        "store_server": settings.store_server,
    }

    logger.debug("Health check requested", status="healthy")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response_data,
    )
