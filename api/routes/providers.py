"""
Provider routes.
"""

from typing import List

from fastapi import APIRouter, HTTPException
import logging

from api.models import AuthProbeRequest, ProviderInfo
from services.generation.models import AuthProbeResult
from services.generation.providers import ProviderRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


async def get_global_generation_service():
    """Get the global generation service instance"""
    from api.generation_service import get_global_generation_service
    return await get_global_generation_service()


@router.get("", response_model=List[ProviderInfo])
async def list_providers():
    """Supported providers"""
    return [
        ProviderInfo(
            id=descriptor.id.value,
            label=descriptor.label,
            lenient_json=descriptor.lenient_json,
            extended_timeout=descriptor.extended_timeout,
        )
        for descriptor in ProviderRegistry().list()
    ]


@router.post("/claude/auth-probe", response_model=AuthProbeResult, response_model_exclude_none=True)
async def probe_claude_auth(request: AuthProbeRequest):
    """Find and persist the header strategy the Claude key is accepted with"""
    try:
        service = await get_global_generation_service()
        return await service.orchestrator.probe_claude(request.api_key)
    except Exception as e:
        logger.error(f"Claude auth probe failed: {e}")
        raise HTTPException(status_code=500, detail=f"Claude auth probe failed: {str(e)}")
