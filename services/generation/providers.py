"""
Provider Registry

Maps each supported provider to the way its HTTP request is built and the
way its response body is turned into generated text. Descriptors are
immutable; the only per-deployment variation (the Claude header strategy)
is injected when the registry is built.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote

from .errors import FormatError, OverloadedError, ProviderError, is_overloaded_text
from .models import ClaudeAuthMethod, ProviderId, ProviderRequest
from .prompts import STRICT_JSON_SYSTEM_SUFFIX, STRICT_JSON_USER_SUFFIX, combine_prompts

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_BROWSER_ACCESS_HEADER = "anthropic-dangerous-direct-browser-access"


def extract_error_message(payload: Any) -> Optional[str]:
    """Pull a readable message out of a provider error payload"""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("type") or str(error)
    if error:
        return str(error)
    message = payload.get("message")
    return str(message) if message else None


@dataclass(frozen=True)
class ProviderDescriptor:
    """How to talk to one provider"""

    id: ProviderId
    label: str
    url: str
    temperature: float = 0.3
    # Lenient providers keep cleaned text when it is not valid JSON
    lenient_json: bool = False
    # Drop everything outside the outermost braces before parsing
    trim_to_braces: bool = False
    # Remove fences left inside the text, not only the outer pair
    strip_inner_fences: bool = False
    # Uses the extended per-attempt timeout
    extended_timeout: bool = False

    def build_request(self, api_key: str, model: str, system_prompt: str, user_prompt: str) -> ProviderRequest:
        raise NotImplementedError

    def parse_response(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def explain_error(self, message: str) -> str:
        """Add provider-specific remediation hints to a failure message"""
        return message

    def error_from_payload(self, payload: Any, status_code: Optional[int] = None) -> ProviderError:
        """Build the typed error for an explicit error payload"""
        message = extract_error_message(payload) or (
            f"Status {status_code}" if status_code else "Unknown error"
        )
        if is_overloaded_text(message):
            return OverloadedError(status_code=status_code)
        if status_code:
            return ProviderError(f"{self.label} API Error ({status_code}): {message}", status_code)
        return ProviderError(f"{self.label} API Error: {message}")

    def _raise_for_error_payload(self, data: Any) -> None:
        if isinstance(data, dict) and data.get("error"):
            raise self.error_from_payload(data)

    def _unexpected_format(self) -> FormatError:
        return FormatError(f"Unexpected response format from {self.label} API")


@dataclass(frozen=True)
class ChatCompletionsProvider(ProviderDescriptor):
    """OpenAI-compatible chat completions API with bearer auth"""

    extra_headers: Tuple[Tuple[str, str], ...] = ()
    trim_key: bool = False

    def _headers(self, api_key: str) -> Dict[str, str]:
        key = api_key.strip() if self.trim_key else api_key
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {key}",
        }
        headers.update(dict(self.extra_headers))
        return headers

    def _messages(self, system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def build_request(self, api_key, model, system_prompt, user_prompt):
        return ProviderRequest(
            url=self.url,
            headers=self._headers(api_key),
            body={
                "model": model,
                "messages": self._messages(system_prompt, user_prompt),
                "temperature": self.temperature,
            },
        )

    def parse_response(self, data):
        self._raise_for_error_payload(data)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise self._unexpected_format()
        if not isinstance(content, str) or not content.strip():
            raise FormatError(f"No content generated by {self.label}")
        return content.strip()


@dataclass(frozen=True)
class GrokProvider(ChatCompletionsProvider):
    """x.ai chat completions with reinforced JSON instructions"""

    max_tokens: int = 16000
    top_p: float = 0.1

    def build_request(self, api_key, model, system_prompt, user_prompt):
        return ProviderRequest(
            url=self.url,
            headers=self._headers(api_key),
            body={
                "messages": [
                    {"role": "system", "content": system_prompt + STRICT_JSON_SYSTEM_SUFFIX},
                    {"role": "user", "content": user_prompt + STRICT_JSON_USER_SUFFIX},
                ],
                "model": model,
                "stream": False,
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "top_p": self.top_p,
            },
        )

    def parse_response(self, data):
        self._raise_for_error_payload(data)
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise FormatError("Invalid x.ai response format: missing choices array")
        choice = choices[0] if isinstance(choices[0], dict) else {}
        content = (choice.get("message") or {}).get("content")
        if not content:
            raise FormatError("Invalid x.ai response format: missing content")
        if choice.get("finish_reason") == "length":
            logger.warning("x.ai response was truncated due to token limit")
        return content.strip()

    def explain_error(self, message):
        if "Invalid API Key" in message:
            return (
                'Invalid x.ai API Key: Please make sure your key starts with "xai-" and is complete. '
                "Note that Grok 3/x.ai is a paid service - verify your account has active "
                "subscription or sufficient credits."
            )
        if "not found" in message or "404" in message:
            return 'x.ai API Error: The model or endpoint was not found. Try using "grok-3-latest" as the model.'
        if "Rate limit" in message:
            return "x.ai API Rate Limit: Your account has exceeded its request quota. Please try again later."
        if "missing choices" in message:
            return "x.ai API Error: Response format issue. Please verify your account status and API key validity."
        if "missing content" in message:
            return "x.ai API Error: Response content issue. Please verify your API key has proper access to the model."
        if "context length" in message:
            return (
                "x.ai API Error: The workflow is too large for x.ai to handle. "
                "Try simplifying your prompt or use a different provider."
            )
        return message


@dataclass(frozen=True)
class GeminiProvider(ProviderDescriptor):
    """Google generateContent API; the key travels in the query string"""

    def build_request(self, api_key, model, system_prompt, user_prompt):
        return ProviderRequest(
            url=f"{self.url}/{model}:generateContent?key={quote(api_key, safe='')}",
            headers={"Content-Type": "application/json"},
            body={
                "contents": [
                    {
                        "role": "user",
                        "parts": [{"text": combine_prompts(system_prompt, user_prompt)}],
                    }
                ],
                "generationConfig": {"temperature": self.temperature},
            },
        )

    def parse_response(self, data):
        self._raise_for_error_payload(data)
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise self._unexpected_format()
        text = (text or "").strip()
        if not text:
            raise FormatError(f"No content generated by {self.label}")
        if "```" in text:
            start = text.find("```")
            end = text.find("```", start + 3)
            if end != -1:
                inner = text[start + 3:end]
                if inner.lower().startswith("json"):
                    inner = inner[4:]
                return inner.strip()
        return text


@dataclass(frozen=True)
class ClaudeProvider(ProviderDescriptor):
    """Anthropic messages API"""

    auth_method: ClaudeAuthMethod = ClaudeAuthMethod.X_API_KEY
    max_tokens: int = 4096

    def build_request(self, api_key, model, system_prompt, user_prompt):
        headers = {
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
            ANTHROPIC_BROWSER_ACCESS_HEADER: "true",
        }
        if self.auth_method == ClaudeAuthMethod.BEARER:
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            headers["x-api-key"] = api_key
        return ProviderRequest(
            url=self.url,
            headers=headers,
            body={
                "model": model,
                "max_tokens": self.max_tokens,
                "messages": [
                    {"role": "user", "content": combine_prompts(system_prompt, user_prompt)}
                ],
                "temperature": self.temperature,
            },
        )

    def parse_response(self, data):
        self._raise_for_error_payload(data)
        content = data.get("content") if isinstance(data, dict) else None
        if isinstance(content, list):
            texts = [
                block.get("text", "")
                for block in content
                if isinstance(block, dict) and block.get("type") == "text"
            ]
            if texts:
                return "\n".join(texts).strip()
        # Legacy completions API
        if isinstance(data, dict) and data.get("completion"):
            return str(data["completion"]).strip()
        raise FormatError("Unexpected response format from Claude API")

    def explain_error(self, message):
        if "CORS" in message or ANTHROPIC_BROWSER_ACCESS_HEADER in message:
            return (
                f"CORS Error: Claude API requires the '{ANTHROPIC_BROWSER_ACCESS_HEADER}' header. "
                "Please try again."
            )
        return message


def _build_descriptors(claude_auth_method: ClaudeAuthMethod) -> Dict[ProviderId, ProviderDescriptor]:
    descriptors = [
        ChatCompletionsProvider(
            id=ProviderId.OPENAI,
            label="OpenAI (GPT)",
            url="https://api.openai.com/v1/chat/completions",
        ),
        GeminiProvider(
            id=ProviderId.GEMINI,
            label="Google Gemini",
            url="https://generativelanguage.googleapis.com/v1beta/models",
        ),
        ChatCompletionsProvider(
            id=ProviderId.MISTRAL,
            label="Mistral AI",
            url="https://api.mistral.ai/v1/chat/completions",
            lenient_json=True,
        ),
        ClaudeProvider(
            id=ProviderId.CLAUDE,
            label="Anthropic (Claude)",
            url="https://api.anthropic.com/v1/messages",
            temperature=0.2,
            lenient_json=True,
            strip_inner_fences=True,
            auth_method=claude_auth_method,
        ),
        ChatCompletionsProvider(
            id=ProviderId.OPENROUTER,
            label="OpenRouter",
            url="https://openrouter.ai/api/v1/chat/completions",
            extra_headers=(
                ("HTTP-Referer", "https://github.com/farhansrambiyan/n8n-Workflow-Builder-Ai"),
                ("X-Title", "n8n Workflow Builder Ai (Beta)"),
            ),
        ),
        GrokProvider(
            id=ProviderId.GROK,
            label="Grok (x.ai)",
            url="https://api.x.ai/v1/chat/completions",
            temperature=0.1,
            lenient_json=True,
            trim_to_braces=True,
            extended_timeout=True,
            trim_key=True,
        ),
        ChatCompletionsProvider(
            id=ProviderId.GROQ,
            label="Groq",
            url="https://api.groq.com/openai/v1/chat/completions",
            trim_key=True,
        ),
    ]
    return {descriptor.id: descriptor for descriptor in descriptors}


class ProviderRegistry:
    """Lookup of provider descriptors by identifier"""

    def __init__(self, claude_auth_method: Union[ClaudeAuthMethod, str, None] = None):
        self.claude_auth_method = resolve_auth_method(claude_auth_method)
        self._providers = _build_descriptors(self.claude_auth_method)

    def get(self, provider_id: Union[ProviderId, str, None]) -> Optional[ProviderDescriptor]:
        """Return the descriptor for provider_id, or None when unknown"""
        try:
            return self._providers[ProviderId(provider_id)]
        except ValueError:
            return None

    def list(self) -> List[ProviderDescriptor]:
        return list(self._providers.values())


def resolve_auth_method(value: Union[ClaudeAuthMethod, str, None]) -> ClaudeAuthMethod:
    """Resolve a stored header-strategy preference, defaulting to x-api-key"""
    if not value:
        return ClaudeAuthMethod.X_API_KEY
    try:
        return ClaudeAuthMethod(value)
    except ValueError:
        logger.warning(f"Ignoring unknown Claude auth method: {value}")
        return ClaudeAuthMethod.X_API_KEY


_default_registry = ProviderRegistry()


def get_provider(provider_id: Union[ProviderId, str, None]) -> Optional[ProviderDescriptor]:
    """Look up a provider in the default registry"""
    return _default_registry.get(provider_id)
