"""
Generation history routes.
"""

from fastapi import APIRouter, HTTPException
import logging

from api.models import HistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["History"])


async def get_global_generation_service():
    """Get the global generation service instance"""
    from api.generation_service import get_global_generation_service
    return await get_global_generation_service()


@router.get("", response_model=HistoryResponse)
async def list_history():
    """Past successful generations, most recent first"""
    service = await get_global_generation_service()
    entries = await service.orchestrator.history.list()
    return HistoryResponse(entries=entries, total=len(entries))


@router.delete("/{entry_id}")
async def delete_history_entry(entry_id: int):
    """Delete one history entry by id"""
    service = await get_global_generation_service()
    removed = await service.orchestrator.history.remove(entry_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"History entry '{entry_id}' not found")
    logger.info(f"Deleted history entry {entry_id}")
    return {"success": True, "id": entry_id}
