"""
Data models for the workflow generation service.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# Persisted state keys shared between the orchestrator and UI processes
GENERATION_IN_PROGRESS = "generationInProgress"
GENERATION_COMPLETE = "generationComplete"
GENERATED_JSON = "generatedJson"
GENERATION_ERROR = "generationError"
GENERATION_STATUS = "generationStatus"
CURRENT_PROMPT = "currentPrompt"
GENERATION_HISTORY = "generationHistory"
CLAUDE_AUTH_METHOD = "claudeAuthMethod"

STATE_KEYS = [
    GENERATION_IN_PROGRESS,
    GENERATION_COMPLETE,
    GENERATED_JSON,
    GENERATION_ERROR,
    GENERATION_STATUS,
]


class ProviderId(str, Enum):
    """Supported LLM providers"""
    OPENAI = "openai"
    GEMINI = "gemini"
    MISTRAL = "mistral"
    CLAUDE = "claude"
    OPENROUTER = "openrouter"
    GROK = "grok"
    GROQ = "groq"


class ClaudeAuthMethod(str, Enum):
    """Header strategies accepted by the Anthropic API"""
    X_API_KEY = "x-api-key"
    BEARER = "bearer"


class GenerationPhase(str, Enum):
    """Lifecycle of a single generation"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class GenerationRequest(BaseModel):
    """A user request to generate workflow JSON through one provider"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    provider_id: str = Field(..., alias="providerId", description="Provider identifier")
    api_key: Optional[str] = Field(default=None, alias="apiKey", description="Provider API key")
    model: Optional[str] = Field(default=None, description="Provider model name")
    user_prompt: str = Field(default="", alias="userPrompt", description="Natural language request")
    system_prompt: Optional[str] = Field(
        default=None,
        alias="systemPrompt",
        description="System instructions; the default workflow builder prompt is used when omitted"
    )


class GenerationState(BaseModel):
    """Process-wide generation state as persisted in the shared store"""

    model_config = ConfigDict(populate_by_name=True)

    in_progress: bool = Field(default=False, alias=GENERATION_IN_PROGRESS)
    complete: bool = Field(default=False, alias=GENERATION_COMPLETE)
    generated_json: Optional[str] = Field(default=None, alias=GENERATED_JSON)
    error: Optional[str] = Field(default=None, alias=GENERATION_ERROR)
    status: Optional[str] = Field(default=None, alias=GENERATION_STATUS)

    @property
    def phase(self) -> GenerationPhase:
        if self.in_progress:
            return GenerationPhase.RUNNING
        if self.complete and self.error:
            return GenerationPhase.FAILED
        if self.complete and self.generated_json:
            return GenerationPhase.SUCCEEDED
        return GenerationPhase.IDLE

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class HistoryEntry(BaseModel):
    """One successful generation kept in the bounded history"""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Creation time in epoch milliseconds")
    prompt: str
    json_output: str = Field(..., alias="json")
    provider: str
    timestamp: str = Field(..., description="ISO-8601 creation time")

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProviderRequest(BaseModel):
    """A fully built provider HTTP call"""

    url: str
    headers: Dict[str, str]
    body: Dict[str, Any]


class Notification(BaseModel):
    """User-facing notification emitted once per terminal transition"""

    type: str = "basic"
    title: str
    message: str
    kind: str = Field(default="success", description="success, error or timeout")
    dismiss_after: float = Field(default=3.0, description="Auto-dismiss delay in seconds")


class AuthProbeResult(BaseModel):
    """Outcome of the Claude header-strategy probe"""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    models: List[str] = Field(default_factory=list)
    auth_method: Optional[ClaudeAuthMethod] = Field(default=None, alias="authMethod")
    error: Optional[str] = None
    bearer_error: Optional[str] = Field(default=None, alias="bearerError")
