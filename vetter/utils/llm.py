"""
LLM provider abstraction and response parsing utilities.

Provides a provider interface for generative-service calls with bounded timeouts and
automatic retries on transient errors, plus strict parsing of JSON documents returned
inside model responses.
"""

import json
import os
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import Callable, TypeVar, Union

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# Retry configuration
MAX_RETRIES = 3
BASE_DELAY = 1.0

DEFAULT_TIMEOUT_S = 120.0
DEFAULT_MAX_TOKENS = 4096

T = TypeVar("T")

ExceptionTypes = Union[type[Exception], tuple[type[Exception], ...]]


class LLMServiceError(Exception):
    """The generative service call could not complete (network, status, timeout)."""


class LLMResponseParseError(LLMServiceError):
    """The service answered but the content could not be parsed."""


def _retry_with_backoff(
    operation: Callable[[], T],
    retryable_exception: ExceptionTypes,
    error_message: str,
) -> T:
    """
    Execute operation with exponential backoff retry on specific exceptions.

    Args:
        operation: Callable that performs the API request and returns result
        retryable_exception: Exception type (or tuple of types) that triggers retry
        error_message: Message prefix for retry logging (e.g., "API overloaded")
    """
    for attempt in range(MAX_RETRIES):
        try:
            return operation()
        except retryable_exception:
            if attempt == MAX_RETRIES - 1:
                raise
            delay = BASE_DELAY * (2**attempt)
            logger.warning(
                f"{error_message}, retrying in {delay:.1f}s... "
                f"(attempt {attempt + 1}/{MAX_RETRIES})"
            )
            time.sleep(delay)


# --- LLM Provider Classes ---


@dataclass
class LLMResponse:
    """Response from an LLM provider (first text content block plus usage)."""

    id: str
    role: str
    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses must:
    - Set _provider_prefix class attribute (e.g., "anthropic")
    - Set self._retryable_exception to the exception type(s) that trigger retry
    - Set self._service_exception to the SDK's base error type
    - Set self._retry_message for logging during retries
    - Implement _call_api() for the actual API call
    - Call update_model(model) in __init__ to set model and name
    """

    _provider_prefix: str
    _retryable_exception: ExceptionTypes
    _service_exception: ExceptionTypes
    _retry_message: str

    name: str
    model: str

    def update_model(self, model: str):
        """Update the model and refresh the provider name."""
        self.model = model
        self.name = f"{self._provider_prefix}/{model}"

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str, max_tokens: int) -> LLMResponse:
        """Make a single API call (no retries). Implemented by subclasses."""
        pass

    def generate(
        self, system_prompt: str, user_prompt: str, max_tokens: int = DEFAULT_MAX_TOKENS
    ) -> LLMResponse:
        """
        Generate a response with automatic retry on transient errors.

        Raises:
            LLMServiceError: If the call fails after retries or fails permanently
        """
        try:
            return _retry_with_backoff(
                partial(self._call_api, system_prompt, user_prompt, max_tokens),
                self._retryable_exception,
                self._retry_message,
            )
        except self._service_exception as e:
            raise LLMServiceError(f"{self.name} request failed: {e}") from e


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider with bounded timeout and exponential backoff retry."""

    _provider_prefix = "anthropic"
    _retry_message = "API overloaded"

    def __init__(
        self,
        model: str = "claude-sonnet-4-5-20250929",
        api_key: str = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        # Lazy import - anthropic SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install anthropic")

        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        # Retries are handled here so they show up in the log
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout_s, max_retries=0)
        self._retryable_exception = (
            anthropic.RateLimitError,
            anthropic.InternalServerError,
            anthropic.APIConnectionError,
        )
        self._service_exception = anthropic.APIError
        self.update_model(model)

    def _call_api(self, system_prompt: str, user_prompt: str, max_tokens: int) -> LLMResponse:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMResponseParseError(f"{self.name} returned no text content")

        return LLMResponse(
            id=response.id,
            role=response.role,
            content=text_blocks[0],
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# --- Provider Factory ---


def get_provider(
    provider_name: str = None,
    model: str = None,
    api_key: str = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> LLMProvider:
    """
    Get an LLM provider instance.

    Args:
        provider_name: Provider identifier (default: from LLM_PROVIDER env var, "anthropic")
        model: Model name (default: provider-specific default)
        api_key: API key (default: from environment)
        timeout_s: Per-call timeout in seconds

    Returns:
        LLMProvider instance
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "anthropic").lower()

    if provider_name == "anthropic":
        kwargs = {"api_key": api_key, "timeout_s": timeout_s}
        if model:
            kwargs["model"] = model
        return AnthropicProvider(**kwargs)
    else:
        raise ValueError(f"Unknown provider: {provider_name}. Use 'anthropic'")


# --- Response Parsing Utilities ---

_FENCE_OPEN = re.compile(r"^```(?:json)?[^\n]*\n?")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_json_wrapping(text: str) -> str:
    """
    Remove prefatory commentary and markdown code fences around a JSON document.

    Handles responses like:
        Here is the evaluation:
        ```json
        {...}
        ```

    Args:
        text: Raw model response

    Returns:
        Text starting at the JSON document (or at the fenced block contents)
    """
    cleaned = text.strip()

    fence_start = cleaned.find("```")
    brace_start = cleaned.find("{")

    if fence_start >= 0 and (brace_start < 0 or fence_start < brace_start):
        cleaned = cleaned[fence_start:]
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    elif brace_start > 0:
        cleaned = cleaned[brace_start:]

    return cleaned.strip()


def parse_json_object(text: str) -> dict:
    """
    Parse a JSON object from a model response.

    Strips commentary and code fences first; if trailing text follows the object, the
    outermost {...} span is tried as a last resort.

    Args:
        text: Raw model response

    Returns:
        Parsed JSON object

    Raises:
        LLMResponseParseError: If no JSON object can be parsed
    """
    cleaned = strip_json_wrapping(text)

    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise LLMResponseParseError(f"No JSON object in response: {text[:200]!r}")
        try:
            result = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise LLMResponseParseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(result, dict):
        raise LLMResponseParseError(f"Expected a JSON object, got {type(result).__name__}")

    return result
