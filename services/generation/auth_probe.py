"""
Claude auth probe

Anthropic accepts either an ``x-api-key`` header or a bearer token depending
on account and proxy configuration. The probe lists models with the
x-api-key strategy first, falls back to bearer, and persists whichever
works as ``claudeAuthMethod`` so generations use it without probing again.
"""

from typing import Any, Dict, List, Optional

import httpx

from core.logging_config import get_logger
from .models import CLAUDE_AUTH_METHOD, AuthProbeResult, ClaudeAuthMethod
from .providers import ANTHROPIC_BROWSER_ACCESS_HEADER, ANTHROPIC_VERSION
from .state_store import StateStore

logger = get_logger(__name__)

CLAUDE_MODELS_URL = "https://api.anthropic.com/v1/models"


class ProbeFailed(Exception):
    """One header strategy was rejected"""


class ClaudeAuthProbe:
    """Finds the header strategy a Claude API key is accepted with"""

    def __init__(
        self,
        store: StateStore,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.timeout = timeout
        self.transport = transport

    def _headers(self, api_key: str, method: ClaudeAuthMethod) -> Dict[str, str]:
        headers = {
            "anthropic-version": ANTHROPIC_VERSION,
            ANTHROPIC_BROWSER_ACCESS_HEADER: "true",
        }
        if method == ClaudeAuthMethod.BEARER:
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            headers["x-api-key"] = api_key
        return headers

    async def _list_models(self, client: httpx.AsyncClient, api_key: str, method: ClaudeAuthMethod) -> List[str]:
        try:
            response = await client.get(CLAUDE_MODELS_URL, headers=self._headers(api_key, method))
        except httpx.HTTPError as e:
            raise ProbeFailed(f"Network error: {e}")

        logger.info(f"Claude {method.value} probe status: {response.status_code}")
        if response.status_code >= 400:
            text = response.text or response.reason_phrase or "Unknown error"
            raise ProbeFailed(f"API Error ({response.status_code}): {text}")

        try:
            data: Any = response.json()
        except ValueError:
            raise ProbeFailed("Invalid JSON in models response")

        models = (data.get("models") or data.get("data")) if isinstance(data, dict) else None
        if not models:
            where = "Bearer response" if method == ClaudeAuthMethod.BEARER else "response"
            raise ProbeFailed(f"No models found in {where}")
        return [model.get("id", "") for model in models if isinstance(model, dict)]

    async def probe(self, api_key: str) -> AuthProbeResult:
        """Try x-api-key, then bearer; persist the first that lists models"""
        if not api_key:
            return AuthProbeResult(success=False, message="API key is required", error="API key is required")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                models = await self._list_models(client, api_key, ClaudeAuthMethod.X_API_KEY)
                return await self._succeed(ClaudeAuthMethod.X_API_KEY, "x-api-key", models)
            except ProbeFailed as e:
                first_error = str(e)
                logger.warning(f"x-api-key probe failed, trying Bearer: {first_error}")

            try:
                models = await self._list_models(client, api_key, ClaudeAuthMethod.BEARER)
                return await self._succeed(ClaudeAuthMethod.BEARER, "Bearer", models)
            except ProbeFailed as e:
                bearer_error = str(e)
                logger.error(f"Bearer probe failed: {bearer_error}")

        return AuthProbeResult(
            success=False,
            message=(
                "Both authentication methods failed. "
                f"First error: {first_error}, Bearer error: {bearer_error}"
            ),
            error=first_error,
            bearer_error=bearer_error,
        )

    async def _succeed(self, method: ClaudeAuthMethod, name: str, models: List[str]) -> AuthProbeResult:
        await self.store.set({CLAUDE_AUTH_METHOD: method.value})
        logger.info(f"✅ Claude API key verified with {name}, {len(models)} models")
        return AuthProbeResult(
            success=True,
            message=f"API key verified successfully with {name} method",
            models=models,
            auth_method=method,
        )
