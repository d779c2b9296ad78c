"""Exceptions raised by the planner."""

from typing import Any, Dict, List, Optional


class KaioError(Exception):
    """Base class for planner errors."""


class PlanGenerationError(KaioError):
    """A plan could not be produced by the generation service.

    ``user_message`` is safe to show to the user; the exception text may
    carry more detail and is meant for logs.
    """

    user_message = "Failed to generate plan. Please try again."

    def __init__(self, message: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ConfigurationError(PlanGenerationError):
    """A credential or setting required by the generation service is missing."""

    user_message = (
        "OpenRouter API key is not configured. "
        "Please add OPENROUTER_API_KEY to your environment variables."
    )


class TransportError(PlanGenerationError):
    """The generation request failed at the network or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            user_message = f"Plan service error ({status_code}): {body}"
        else:
            user_message = f"Could not reach the plan service: {message}"
        super().__init__(message, user_message=user_message)


class MalformedResponseError(PlanGenerationError):
    """The service returned something that is not JSON."""

    user_message = "The AI returned invalid JSON format. Please try again."


class SchemaValidationError(PlanGenerationError):
    """The service returned JSON that does not match the plan schema."""

    user_message = "The AI response didn't match the expected format. Please try again."

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class GenerationInProgress(KaioError):
    """A plan generation is already running for this store."""


class StorageUnavailable(KaioError):
    """Durable storage cannot be read or written."""
