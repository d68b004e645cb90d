"""
Error taxonomy for workflow generation.

Every failure that can end a generation is a GenerationError; its message
is the text surfaced to the user as ``generationError``.
"""


class GenerationError(Exception):
    """Base class for all generation failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(GenerationError):
    """Missing or invalid provider, API key or model. Never retried."""


class TransportError(GenerationError):
    """The request could not complete at the network level"""


class AttemptTimeoutError(TransportError):
    """A single attempt exceeded its per-attempt timeout"""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"The request timed out after {timeout_seconds:g} seconds. "
            "The service might be overloaded."
        )
        self.timeout_seconds = timeout_seconds


class OverallTimeoutError(TransportError):
    """The overall generation deadline expired"""

    def __init__(self, label: str, timeout_seconds: float):
        minutes = timeout_seconds / 60
        duration = f"{minutes:g} minutes" if timeout_seconds >= 60 else f"{timeout_seconds:g} seconds"
        super().__init__(
            f"Generation timed out after {duration}. The {label} API might be overloaded."
        )
        self.label = label
        self.timeout_seconds = timeout_seconds
        self.duration = duration


class ProviderError(GenerationError):
    """The provider answered with an explicit error payload"""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class OverloadedError(ProviderError):
    """Temporary provider capacity exhaustion; the only retryable condition"""

    def __init__(self, message: str = "Overloaded", status_code=None):
        super().__init__(message, status_code)


class FormatError(GenerationError):
    """The response shape was not recognized or its JSON could not be used"""


class RetriesExhaustedError(GenerationError):
    """The provider stayed overloaded through every retry"""

    def __init__(self, label: str, retries: int):
        super().__init__(
            f"{label} API still overloaded after {retries} retries. Please try again later."
        )
        self.retries = retries


class GenerationCancelledError(GenerationError):
    """The user cancelled the generation"""

    def __init__(self, message: str = "Generation cancelled"):
        super().__init__(message)


def is_overloaded_text(text) -> bool:
    """Return True when a provider message or body reports overload"""
    return bool(text) and "overloaded" in str(text).lower()
