"""
@file health.py
@brief Health check API endpoints
@details
Provides endpoints for monitoring system status, readiness, and liveness.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from stbg.core.health import get_system_health, HealthStatus

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    @brief Get system health status

    @details
    Returns 503 only when the analysis itself is unavailable; a missing
    cache is reported as degraded with 200.
    """
    health = await get_system_health()

    if health["status"] == HealthStatus.UNHEALTHY:
        return JSONResponse(
            status_code=503,
            content={
                "status": health["status"],
                "message": health["message"],
                "components": health["components"],
                "note": "System is in maintenance mode. Critical services are unavailable."
            }
        )

    return {
        "status": health["status"],
        "message": health["message"],
        "components": health["components"]
    }


@router.get("/health/ready")
async def readiness_check():
    """
    @brief Kubernetes readiness probe
    @details Ready whenever analyses can run, with or without the cache.
    """
    health = await get_system_health()

    if health["status"] != HealthStatus.UNHEALTHY:
        return {"ready": True, "status": "System is ready"}
    return JSONResponse(
        status_code=503,
        content={
            "ready": False,
            "status": "System is not ready",
            "reason": health["message"]
        }
    )


@router.get("/health/live")
async def liveness_check():
    """
    @brief Kubernetes liveness probe
    @details Returns 200 as long as application is running.
    """
    return {"alive": True, "status": "Application is running"}
