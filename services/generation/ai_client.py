"""
Provider HTTP client

Sends a built ProviderRequest and classifies everything that can go wrong
on the wire into the generation error taxonomy. Timeouts and retries are
owned by the RetryController; this client performs exactly one call.
"""

import json
import time
import uuid
from typing import Any, Dict, Optional

import httpx

from core.logging_config import get_logger, get_llm_logger
from .errors import (
    AttemptTimeoutError,
    FormatError,
    OverloadedError,
    ProviderError,
    TransportError,
    is_overloaded_text,
)
from .models import ProviderRequest
from .providers import ProviderDescriptor, extract_error_message

logger = get_logger(__name__)
llm_logger = get_llm_logger(__name__)


class ProviderClient:
    """
    Client for provider chat/generation endpoints.

    Responsibilities:
    - Issuing the POST for a single attempt
    - Mapping network failures and non-2xx answers to typed errors
    - Logging request/response pairs without leaking credentials
    """

    def __init__(self, timeout: float = 300.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        # httpx timeout is a backstop; the per-attempt deadline is enforced by the caller
        self.timeout = timeout
        self.transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def send(
        self,
        request: ProviderRequest,
        descriptor: ProviderDescriptor,
        model: str = "",
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """POST the request and return the decoded JSON body"""
        timeout = timeout or self.timeout
        request_id = str(uuid.uuid4())[:8]
        llm_logger.log_llm_request(
            provider=descriptor.id.value,
            model=model,
            url=request.url,
            headers=request.headers,
            prompt=json.dumps(request.body)[:500],
            request_id=request_id,
        )

        start_time = time.time()
        try:
            async with self._client(timeout) as client:
                response = await client.post(request.url, headers=request.headers, json=request.body)
        except httpx.TimeoutException as e:
            llm_logger.log_llm_error(descriptor.id.value, model, f"timeout: {e}", request_id)
            raise AttemptTimeoutError(timeout)
        except httpx.TransportError as e:
            llm_logger.log_llm_error(descriptor.id.value, model, str(e), request_id)
            raise TransportError(f"Network error contacting {descriptor.label} API: {e}")

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            error = self._error_for_status(response, descriptor)
            llm_logger.log_llm_error(descriptor.id.value, model, error.message, request_id)
            raise error

        try:
            data = response.json()
        except ValueError:
            logger.error(f"{descriptor.label} returned a non-JSON body: {response.text[:200]}")
            raise FormatError(f"Unexpected response format from {descriptor.label} API")

        llm_logger.log_llm_response(
            provider=descriptor.id.value,
            model=model,
            response=response.text,
            request_id=request_id,
            duration_ms=duration_ms,
        )
        return data

    def _error_for_status(self, response: httpx.Response, descriptor: ProviderDescriptor) -> ProviderError:
        body = response.text
        if is_overloaded_text(body):
            logger.warning(f"{descriptor.label} reported overload (HTTP {response.status_code})")
            return OverloadedError(status_code=response.status_code)

        try:
            message = extract_error_message(response.json())
        except ValueError:
            message = None
        if not message:
            message = body[:200] or response.reason_phrase or "Unknown error"
        return ProviderError(
            f"{descriptor.label} API Error ({response.status_code}): {message}",
            response.status_code,
        )
