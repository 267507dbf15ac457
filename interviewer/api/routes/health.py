"""
Health check endpoints.
"""

from fastapi import APIRouter, HTTPException

from interviewer import __version__
from interviewer.api.dependencies import StoreDep
from interviewer.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check(store: StoreDep):
    """
    Health check endpoint.

    Returns:
        Store status with session and protocol counts.
    """
    state = store.state
    return {
        "status": "unhealthy" if store.disposed else "healthy",
        "version": __version__,
        "debug": settings.debug,
        "components": {
            "store": {
                "sessions": len(state.sessions),
                "installed_protocols": len(state.installed_protocols),
                "version": state.version,
            }
        },
    }


@router.get("/health/live")
async def liveness():
    """Liveness check: 200 while the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(store: StoreDep):
    """Readiness check: 503 once the store has been disposed."""
    if store.disposed:
        raise HTTPException(status_code=503, detail="Store not ready")
    return {"status": "ready"}
