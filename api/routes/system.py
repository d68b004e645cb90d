"""
System routes for health checks and system status.
"""

from datetime import datetime, timezone
from fastapi import APIRouter
from typing import Dict, Any
import logging

from api.models import NotificationsResponse
from core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/system", tags=["System"])


async def get_global_generation_service():
    """Get the global generation service instance"""
    from api.generation_service import get_global_generation_service
    return await get_global_generation_service()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint"""
    service = await get_global_generation_service()
    health = service.get_health_status()
    return {
        "status": "healthy" if health["healthy"] else "unhealthy",
        "generation": health,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0"
    }


@router.get("/retry-policy")
async def get_retry_policy() -> Dict[str, Any]:
    """Current timeout and retry configuration"""
    return {
        "per_attempt_timeout_seconds": settings.per_attempt_timeout_seconds,
        "extended_attempt_timeout_seconds": settings.extended_attempt_timeout_seconds,
        "max_generation_seconds": settings.max_generation_seconds,
        "max_retries": settings.max_retries,
        "retry_base_delay": settings.retry_base_delay,
        "retry_max_delay": settings.retry_max_delay,
        "status_interval_seconds": settings.status_interval_seconds,
    }


@router.get("/notifications", response_model=NotificationsResponse)
async def list_notifications():
    """Recent user-facing notifications, oldest first"""
    service = await get_global_generation_service()
    return NotificationsResponse(notifications=list(service.notifications.notifications))
