"""
Background generation orchestrator

Receives commands from UI processes, acknowledges a start before any
network I/O and runs the generation as a detached task:
registry -> provider client under the retry controller -> normalizer ->
one terminal state write, plus history and a single notification.
"""

import asyncio
from typing import Any, Dict, Optional

from pydantic import ValidationError

from core.config import Settings, settings as default_settings
from core.logging_config import get_logger
from .ai_client import ProviderClient
from .auth_probe import ClaudeAuthProbe
from .errors import (
    ConfigurationError,
    GenerationCancelledError,
    GenerationError,
    OverallTimeoutError,
)
from .history import HistoryStore, new_history_entry
from .models import (
    CLAUDE_AUTH_METHOD,
    AuthProbeResult,
    GenerationRequest,
    Notification,
)
from .normalizer import ResponseNormalizer
from .notifications import (
    LoggingNotificationSink,
    NotificationSink,
    error_notification,
    success_notification,
    timeout_notification,
)
from .prompts import DEFAULT_SYSTEM_PROMPT
from .providers import ProviderDescriptor, ProviderRegistry
from .retry import RetryController, RetryOptions, SleepFn
from .state_machine import GenerationStateMachine
from .state_store import StateStore

logger = get_logger(__name__)

ALREADY_RUNNING_MESSAGE = "A generation is already in progress"
INVALID_PROVIDER_MESSAGE = "Invalid provider"


class GenerationOrchestrator:
    """
    Single-writer orchestrator over the shared generation state.

    Only one generation runs at a time per orchestrator; a start issued while
    one is running is rejected without touching the store.
    """

    def __init__(
        self,
        store: StateStore,
        settings: Optional[Settings] = None,
        notifier: Optional[NotificationSink] = None,
        transport=None,
        sleep: Optional[SleepFn] = None,
    ):
        self.settings = settings or default_settings
        self.store = store
        self.state = GenerationStateMachine(store)
        self.history = HistoryStore(store, limit=self.settings.history_limit)
        self.normalizer = ResponseNormalizer()
        self.client = ProviderClient(
            timeout=self.settings.extended_attempt_timeout_seconds,
            transport=transport,
        )
        self.auth_probe = ClaudeAuthProbe(store, transport=transport)
        self.notify = notifier or LoggingNotificationSink()
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    async def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch one command from the message channel and return its ack"""
        action = message.get("action")
        logger.debug(f"Received action: {action}")

        if action == "startBackgroundGeneration":
            try:
                request = GenerationRequest.model_validate(message)
            except ValidationError as e:
                return {"success": False, "message": f"Invalid generation request: {e.errors()[0]['msg']}"}
            return await self.start(request)

        if action == "cancelGeneration":
            return await self.cancel()

        if action == "clearGenerationData":
            await self.clear()
            return {"success": True}

        if action == "directClaudeTest":
            result = await self.probe_claude(message.get("apiKey") or "")
            return result.model_dump(by_alias=True, exclude_none=True, mode="json")

        return {"success": False, "message": f"Unknown action: {action}"}

    async def start(self, request: GenerationRequest) -> Dict[str, Any]:
        """Begin a generation; network work continues after the ack is returned"""
        registry = await self._registry()
        descriptor = registry.get(request.provider_id)

        # No await between the check and begin claiming the slot
        if self.state.is_running:
            logger.warning("Rejecting start: a generation is already in progress")
            return {"success": False, "message": ALREADY_RUNNING_MESSAGE}
        generation_id = await self.state.begin(request.user_prompt)

        if descriptor is None:
            logger.error(f"Unknown provider: {request.provider_id}")
            # The terminal write still follows the ack
            self._task = asyncio.create_task(self._reject(generation_id))
            return {"success": False, "message": INVALID_PROVIDER_MESSAGE}

        self._task = asyncio.create_task(self._run(generation_id, request, descriptor))
        return {"success": True, "message": "Generation started in background"}

    async def _reject(self, generation_id: str) -> None:
        try:
            await self._fail(generation_id, INVALID_PROVIDER_MESSAGE, error_notification(
                INVALID_PROVIDER_MESSAGE, self.settings.error_notification_seconds
            ))
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    async def _registry(self) -> ProviderRegistry:
        auth_method = await self.store.get_value(CLAUDE_AUTH_METHOD)
        return ProviderRegistry(auth_method)

    async def _run(self, generation_id: str, request: GenerationRequest, descriptor: ProviderDescriptor) -> None:
        try:
            generated_json = await self._generate(generation_id, request, descriptor)
        except asyncio.CancelledError:
            logger.info(f"Generation {generation_id} task cancelled")
            raise
        except OverallTimeoutError as e:
            await self._fail(generation_id, e.message, timeout_notification(
                descriptor.label, e.duration, self.settings.error_notification_seconds
            ))
        except GenerationError as e:
            logger.error(f"{descriptor.label} generation error: {e.message}")
            message = descriptor.explain_error(e.message)
            await self._fail(generation_id, message, error_notification(
                message, self.settings.error_notification_seconds
            ))
        except Exception as e:
            logger.exception(f"Unexpected error during {descriptor.label} generation")
            message = descriptor.explain_error(str(e) or e.__class__.__name__)
            await self._fail(generation_id, message, error_notification(
                message, self.settings.error_notification_seconds
            ))
        else:
            await self._succeed(generation_id, request, descriptor, generated_json)
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    async def _generate(self, generation_id: str, request: GenerationRequest, descriptor: ProviderDescriptor) -> str:
        if not request.api_key:
            raise ConfigurationError(f"API key is required for {descriptor.label}")
        if not request.model:
            raise ConfigurationError(f"No model selected for {descriptor.label}")

        system_prompt = request.system_prompt or DEFAULT_SYSTEM_PROMPT
        provider_request = descriptor.build_request(
            request.api_key, request.model, system_prompt, request.user_prompt
        )
        await self.state.update_status(generation_id, f"Generating with {descriptor.label}...")

        options = RetryOptions.from_settings(self.settings, extended_timeout=descriptor.extended_timeout)
        controller = RetryController(options, sleep=self._sleep)

        async def attempt() -> str:
            data = await self.client.send(
                provider_request, descriptor, request.model, timeout=options.per_attempt_timeout
            )
            return descriptor.parse_response(data)

        async def report(message: str) -> None:
            await self.state.update_status(generation_id, message)

        raw_text = await controller.execute(attempt, label=descriptor.label, on_status=report)
        return self.normalizer.normalize(raw_text, descriptor)

    async def _succeed(
        self,
        generation_id: str,
        request: GenerationRequest,
        descriptor: ProviderDescriptor,
        generated_json: str,
    ) -> None:
        if not await self.state.succeed(generation_id, generated_json):
            return
        entry = new_history_entry(request.user_prompt, generated_json, descriptor.id.value)
        try:
            await self.history.append(entry)
        except Exception as e:
            logger.error(f"Failed to save generation history: {e}")
        await self._send(success_notification(self.settings.success_notification_seconds))

    async def _fail(self, generation_id: str, message: str, notification: Notification) -> None:
        if await self.state.fail(generation_id, message):
            await self._send(notification)

    async def _send(self, notification: Notification) -> None:
        try:
            await self.notify(notification)
        except Exception as e:
            logger.warning(f"Failed to deliver notification: {e}")

    async def _stop_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def cancel(self) -> Dict[str, Any]:
        """Abort the running generation and record it as cancelled"""
        generation_id = self.state.active_id
        if generation_id is None:
            return {"success": False, "message": "No generation in progress"}

        await self._stop_task()
        message = GenerationCancelledError().message
        await self._fail(generation_id, message, error_notification(
            message, self.settings.error_notification_seconds
        ))
        return {"success": True, "message": message}

    async def clear(self) -> None:
        """Drop any running generation and reset the state to idle"""
        await self._stop_task()
        await self.state.reset()

    async def probe_claude(self, api_key: str) -> AuthProbeResult:
        return await self.auth_probe.probe(api_key)

    async def wait(self) -> None:
        """Wait for the running generation task, if any, to finish"""
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop the running generation, recording it as cancelled"""
        if self.state.is_running:
            await self.cancel()
        else:
            await self._stop_task()
