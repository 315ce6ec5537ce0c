"""
@file health.py
@brief System health checks and status monitoring

@details
Provides health check status for:
- Analysis registries (criteria and coordinate systems), required
- Redis cache connectivity, optional

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import Dict, Any

from stbg.core.cache import cache
from stbg.services.criteria import CRITERIA
from stbg.spatial.crs import REGISTRY

logger = logging.getLogger(__name__)


class HealthStatus:
    """Health status indicator for system components"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


async def check_registries() -> Dict[str, Any]:
    """
    @brief Check that the analysis registries are loaded
    @return Dict with status and registry sizes
    """
    if not CRITERIA or not REGISTRY:
        return {
            "status": HealthStatus.UNHEALTHY,
            "message": "Analysis registries are empty",
            "component": "analysis"
        }
    return {
        "status": HealthStatus.HEALTHY,
        "message": "Analysis registries are loaded",
        "component": "analysis",
        "criteria": len(CRITERIA),
        "coordinate_systems": len(REGISTRY)
    }


async def check_cache() -> Dict[str, Any]:
    """
    @brief Check Redis cache connectivity

    @return Dict with status, message
    @details
    Redis is optional - degraded status if unavailable.
    """
    try:
        if not cache.client:
            return {
                "status": HealthStatus.DEGRADED,
                "message": "Redis cache is not connected (results are not cached)",
                "component": "cache"
            }

        await cache.client.ping()
        return {
            "status": HealthStatus.HEALTHY,
            "message": "Redis cache is healthy",
            "component": "cache"
        }
    except Exception as e:
        logger.warning(f"Cache health check failed: {e}")
        return {
            "status": HealthStatus.DEGRADED,
            "message": "Redis cache is unavailable (running in degraded mode)",
            "component": "cache",
            "error": str(e)
        }


async def get_system_health() -> Dict[str, Any]:
    """
    @brief Get comprehensive system health status

    @return Dict with overall status and component details
    @details
    - HEALTHY: All components operational
    - DEGRADED: Analysis available, cache unavailable
    - UNHEALTHY: Analysis registries missing
    """
    analysis_status = await check_registries()
    cache_status = await check_cache()

    if analysis_status["status"] == HealthStatus.UNHEALTHY:
        overall_status = HealthStatus.UNHEALTHY
    elif cache_status["status"] == HealthStatus.DEGRADED:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return {
        "status": overall_status,
        "components": {
            "analysis": analysis_status,
            "cache": cache_status
        },
        "message": get_status_message(overall_status)
    }


def get_status_message(status: str) -> str:
    """Get human-readable status message"""
    messages = {
        HealthStatus.HEALTHY: "System is operational",
        HealthStatus.DEGRADED: "System is running without result caching",
        HealthStatus.UNHEALTHY: "System is in maintenance mode (analysis unavailable)"
    }
    return messages.get(status, "Unknown status")
