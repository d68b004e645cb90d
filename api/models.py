"""
API models for the workflow builder service
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from services.generation.models import HistoryEntry, Notification

# ============================================================================
# Command channel
# ============================================================================

class MessageAck(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool
    message: Optional[str] = None

# ============================================================================
# Generation state
# ============================================================================

class GenerationStateResponse(BaseModel):
    generation_in_progress: bool = Field(..., alias="generationInProgress")
    generation_complete: bool = Field(..., alias="generationComplete")
    generated_json: Optional[str] = Field(None, alias="generatedJson")
    generation_error: Optional[str] = Field(None, alias="generationError")
    generation_status: Optional[str] = Field(None, alias="generationStatus")
    current_prompt: str = Field("", alias="currentPrompt")
    phase: str

    model_config = ConfigDict(populate_by_name=True)

# ============================================================================
# Providers
# ============================================================================

class ProviderInfo(BaseModel):
    id: str
    label: str
    lenient_json: bool
    extended_timeout: bool

class AuthProbeRequest(BaseModel):
    api_key: str = Field(..., alias="apiKey", min_length=1)

    model_config = ConfigDict(populate_by_name=True)

# ============================================================================
# History and notifications
# ============================================================================

class HistoryResponse(BaseModel):
    entries: List[HistoryEntry]
    total: int

class NotificationsResponse(BaseModel):
    notifications: List[Notification]
