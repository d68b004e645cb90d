"""
Generation routes: the command channel and the state observation surface.
"""

import json
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import StreamingResponse
import logging

from api.models import GenerationStateResponse, MessageAck
from services.generation.models import CURRENT_PROMPT
from services.generation.state_store import StateStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Generation"])


async def get_global_generation_service():
    """Get the global generation service instance"""
    from api.generation_service import get_global_generation_service
    return await get_global_generation_service()


@router.post("/messages", response_model=MessageAck)
async def post_message(message: Dict[str, Any] = Body(...)):
    """
    Send a command to the orchestrator.

    Accepts the same payloads as the extension message channel:
    startBackgroundGeneration, cancelGeneration, clearGenerationData and
    directClaudeTest. The acknowledgment is returned before any provider
    call is made.
    """
    if "action" not in message:
        raise HTTPException(status_code=400, detail="Message must include an 'action'")
    try:
        service = await get_global_generation_service()
        return await service.orchestrator.handle_message(message)
    except Exception as e:
        logger.error(f"Failed to handle message {message.get('action')}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to handle message: {str(e)}")


@router.get("/generation/state", response_model=GenerationStateResponse)
async def get_generation_state():
    """Current generation state as persisted in the shared store"""
    try:
        service = await get_global_generation_service()
        state = await service.orchestrator.state.current()
        prompt = await service.store.get_value(CURRENT_PROMPT, "")
        return GenerationStateResponse(
            **state.to_store(),
            currentPrompt=prompt or "",
            phase=state.phase.value,
        )
    except Exception as e:
        logger.error(f"Failed to read generation state: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to read generation state: {str(e)}")


async def state_events(store: StateStore) -> AsyncIterator[str]:
    """Render store change sets as server-sent events"""
    async for changes in store.subscribe():
        yield f"data: {json.dumps(changes)}\n\n"


@router.get("/generation/events")
async def stream_generation_events():
    """Server-sent events of store changes: {key: {oldValue, newValue}}"""
    service = await get_global_generation_service()
    return StreamingResponse(
        state_events(service.store),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
