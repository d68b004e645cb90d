"""
Workflow Generation Package

Background generation of n8n workflow JSON through interchangeable LLM
providers, with retries, timeouts and a shared persisted state.
"""

from .orchestrator import GenerationOrchestrator
from .providers import ProviderRegistry, ProviderDescriptor, get_provider
from .normalizer import ResponseNormalizer, normalize
from .retry import RetryController, RetryOptions
from .state_machine import GenerationStateMachine
from .state_store import StateStore, MemoryStateStore, RedisStateStore, create_state_store
from .history import HistoryStore
from .models import (
    GenerationRequest,
    GenerationState,
    HistoryEntry,
    ProviderId,
    ClaudeAuthMethod,
)

__all__ = [
    'GenerationOrchestrator',
    'ProviderRegistry',
    'ProviderDescriptor',
    'get_provider',
    'ResponseNormalizer',
    'normalize',
    'RetryController',
    'RetryOptions',
    'GenerationStateMachine',
    'StateStore',
    'MemoryStateStore',
    'RedisStateStore',
    'create_state_store',
    'HistoryStore',
    'GenerationRequest',
    'GenerationState',
    'HistoryEntry',
    'ProviderId',
    'ClaudeAuthMethod',
]
