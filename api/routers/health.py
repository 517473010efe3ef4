"""
Health check router.

This router provides health check endpoints for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter, Depends

from api.deps import get_settings, get_supabase_client
from backend.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health():
    """
    Simple liveness endpoint.

    Returns:
        dict: Status indicator for health checks
    """
    return {"status": "ok"}


@router.get("/health/ready")
def readiness(settings: Settings = Depends(get_settings)):
    """Report whether the progress store is configured."""
    database = "configured" if get_supabase_client() is not None else "not_configured"
    return {
        "status": "ok" if database == "configured" else "degraded",
        "environment": settings.environment,
        "database": database,
    }
