"""
Response Normalizer

Turns raw provider text into clean JSON text: strips markdown fences and
known explanatory preambles/postambles, then re-serializes the JSON with a
two-space indent. Providers differ in what happens when the text still
does not parse: lenient providers keep the cleaned text verbatim, strict
providers fail the generation with a FormatError.
"""

import json
import logging
import re
from typing import Optional

from .errors import FormatError
from .providers import ProviderDescriptor, get_provider

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_ANY_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_ANY_FENCE_CLOSE = re.compile(r"\s*```")

EXPLANATION_PATTERNS = [
    re.compile(r"^Here's the JSON for your workflow:[\s\n]*", re.IGNORECASE),
    re.compile(r"^Here is the JSON:[\s\n]*", re.IGNORECASE),
    re.compile(r"^Here's the n8n workflow JSON:[\s\n]*", re.IGNORECASE),
    re.compile(r"^The generated JSON:[\s\n]*", re.IGNORECASE),
    re.compile(r"[\s\n]*This JSON can be imported into n8n\.[\s\n]*$", re.IGNORECASE),
    re.compile(r"[\s\n]*You can import this JSON into n8n\.[\s\n]*$", re.IGNORECASE),
]


def strip_code_fence(text: str) -> str:
    """Remove one leading and one trailing markdown fence"""
    if "```" not in text:
        return text
    text = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", text, count=1)


def trim_to_braces(text: str) -> str:
    """Drop text before the first '{' and after the last '}' and any explanations"""
    cleaned = text
    first = cleaned.find("{")
    if first > 0:
        logger.debug(f"Removing content before first brace: {cleaned[:first]!r}")
        cleaned = cleaned[first:]

    last = cleaned.rfind("}")
    if last != -1 and last < len(cleaned) - 1:
        logger.debug(f"Removing content after last brace: {cleaned[last + 1:]!r}")
        cleaned = cleaned[:last + 1]

    if "```" in cleaned:
        cleaned = _ANY_FENCE_CLOSE.sub("", _ANY_FENCE_OPEN.sub("", cleaned))

    for pattern in EXPLANATION_PATTERNS:
        if pattern.search(cleaned):
            logger.debug(f"Removing explanatory text matching: {pattern.pattern}")
            cleaned = pattern.sub("", cleaned)

    return cleaned.strip()


def reserialize(text: str) -> str:
    """Parse JSON text and dump it with a two-space indent"""
    return json.dumps(json.loads(text), indent=2, ensure_ascii=False)


class ResponseNormalizer:
    """Cleans provider output according to each provider's policy"""

    def normalize(self, raw_text: str, provider: ProviderDescriptor) -> str:
        cleaned = strip_code_fence(raw_text.strip())

        if provider.lenient_json:
            if provider.strip_inner_fences and "```" in cleaned:
                cleaned = re.sub(r"```(?:json)?", "", cleaned, flags=re.IGNORECASE).strip()
            if provider.trim_to_braces:
                cleaned = trim_to_braces(cleaned)
            try:
                return reserialize(cleaned)
            except ValueError as e:
                logger.warning(f"Could not parse {provider.label} JSON response, using cleaned text: {e}")
                return cleaned

        try:
            return reserialize(cleaned)
        except ValueError as e:
            raise FormatError(f"Invalid JSON response: {e}")


_normalizer = ResponseNormalizer()


def normalize(raw_text: str, provider_id: str) -> str:
    """Normalize raw_text using the policy of provider_id"""
    provider: Optional[ProviderDescriptor] = get_provider(provider_id)
    if provider is None:
        raise FormatError(f"Unknown provider: {provider_id}")
    return _normalizer.normalize(raw_text, provider)
