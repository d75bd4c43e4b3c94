"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from footsteps.api.dependencies import get_connectivity_probe
from footsteps.core.config import get_settings
from footsteps.core.connectivity import ConnectivityProbe

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": get_settings().app_name,
    }


@router.get("/health/detailed")
async def detailed_health_check(probe: ConnectivityProbe = Depends(get_connectivity_probe)):
    """
    Detailed health check with component status

    The service stays "healthy" while offline or without an API key: every
    feature still answers from the local core responses. Those states
    report as "degraded".
    """
    settings = get_settings()
    components = {
        "connectivity": {
            "status": "healthy" if probe.is_online() else "degraded",
            "online": probe.is_online(),
            "changed_at": probe.changed_at.isoformat() if probe.changed_at else None,
        },
        "model_service": {
            "status": "healthy" if settings.gemini_api_key else "degraded",
            "api_key_configured": bool(settings.gemini_api_key),
            "base_url": settings.gemini_base_url,
            "models": settings.models,
        },
        "resilience": {
            "status": "healthy",
            "max_retries": settings.genai_max_retries,
            "backoff_base_seconds": settings.genai_backoff_base_seconds,
        },
    }

    degraded = any(component["status"] != "healthy" for component in components.values())
    return {
        "status": "degraded" if degraded else "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "version": "0.1.0",
        "environment": settings.app_env,
        "components": components,
    }


@router.get("/health/liveness")
async def liveness_check():
    """Liveness check - is the service alive?"""
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
