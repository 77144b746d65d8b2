"""
Text-generation providers for the resume writer.

One interface over the Anthropic and OpenAI chat APIs: a system instruction and
a user message in, plain text out. Transient failures (overload, rate limits,
dropped connections) are retried with exponential backoff. Every request has an
explicit timeout, and a timed-out call is not retried, so a stalled model call
holds a request for at most that long.
"""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Type, TypeVar

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "anthropic").lower()
LLM_MODEL = os.getenv("LLM_MODEL") or None
GENERATION_TIMEOUT_S = float(os.getenv("GENERATION_TIMEOUT_S", "120"))
MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "4096"))

RETRY_ATTEMPTS = 3
RETRY_BASE_DELAY_S = 1.0

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
}

T = TypeVar("T")


def call_with_retries(
    request: Callable[[], T],
    transient: Tuple[Type[Exception], ...],
    label: str,
    fatal: Tuple[Type[Exception], ...] = (),
    attempts: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY_S,
) -> T:
    """
    Run request, retrying transient failures with exponential backoff.

    Args:
        request: Zero-argument callable performing one API call
        transient: Exception types worth retrying
        label: Provider name used in retry warnings
        fatal: Exception types never retried, even when they subclass a
            transient type
        attempts: Total attempts, including the first
        base_delay: Delay before the first retry; doubled each time

    Raises:
        The last transient exception once attempts are exhausted, or any
        fatal or non-transient exception immediately
    """
    for attempt in range(1, attempts + 1):
        try:
            return request()
        except fatal:
            raise
        except transient as e:
            if attempt == attempts:
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                f"{label}: {type(e).__name__}, retrying in {delay:.1f}s "
                f"(attempt {attempt}/{attempts})"
            )
            time.sleep(delay)


@dataclass
class LLMResponse:
    """Text returned by a provider, with token usage."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(ABC):
    """
    Base class for chat-completion providers.

    Subclasses set `vendor`, `transient_errors` and `fatal_errors`, and implement
    `_request()`; `generate()` adds the retry policy.
    """

    vendor: str = ""
    transient_errors: Tuple[Type[Exception], ...] = ()
    fatal_errors: Tuple[Type[Exception], ...] = ()

    def __init__(self, model: str, timeout: float, max_tokens: int):
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    @property
    def name(self) -> str:
        return f"{self.vendor}/{self.model}"

    @abstractmethod
    def _request(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """One API call, no retries."""

    def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        return call_with_retries(
            lambda: self._request(system_prompt, user_prompt),
            self.transient_errors,
            self.name,
            fatal=self.fatal_errors,
        )


def _require_key(variable: str) -> str:
    api_key = os.getenv(variable)
    if not api_key:
        raise ValueError(f"{variable} environment variable not set")
    return api_key


class AnthropicProvider(LLMProvider):
    vendor = "anthropic"

    def __init__(
        self,
        model: str = DEFAULT_MODELS["anthropic"],
        timeout: float = GENERATION_TIMEOUT_S,
        max_tokens: int = MAX_OUTPUT_TOKENS,
    ):
        # SDK imported here so only the configured vendor's package is loaded
        import anthropic

        super().__init__(model, timeout, max_tokens)
        # Retries are ours; the SDK's own are disabled
        self.client = anthropic.Anthropic(
            api_key=_require_key("ANTHROPIC_API_KEY"), timeout=timeout, max_retries=0
        )
        self.transient_errors = (
            anthropic.InternalServerError,
            anthropic.RateLimitError,
            anthropic.APIConnectionError,
        )
        # APITimeoutError subclasses APIConnectionError; timeouts are not retried
        self.fatal_errors = (anthropic.APITimeoutError,)

    def _request(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return LLMResponse(
            content="".join(block.text for block in message.content if block.type == "text"),
            model=self.model,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )


class OpenAIProvider(LLMProvider):
    vendor = "openai"

    def __init__(
        self,
        model: str = DEFAULT_MODELS["openai"],
        timeout: float = GENERATION_TIMEOUT_S,
        max_tokens: int = MAX_OUTPUT_TOKENS,
    ):
        import openai

        super().__init__(model, timeout, max_tokens)
        self.client = openai.OpenAI(
            api_key=_require_key("OPENAI_API_KEY"), timeout=timeout, max_retries=0
        )
        self.transient_errors = (
            openai.InternalServerError,
            openai.RateLimitError,
            openai.APIConnectionError,
        )
        self.fatal_errors = (openai.APITimeoutError,)

    def _request(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        completion = self.client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return LLMResponse(
            content=completion.choices[0].message.content or "",
            model=self.model,
            input_tokens=completion.usage.prompt_tokens,
            output_tokens=completion.usage.completion_tokens,
        )


PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def get_provider(provider_name: Optional[str] = None, model: Optional[str] = None) -> LLMProvider:
    """
    Build the configured provider.

    Args:
        provider_name: "anthropic" or "openai" (default: LLM_PROVIDER)
        model: Model name (default: LLM_MODEL, then the vendor default)

    Raises:
        ValueError: Unknown provider, or its API key is not set
    """
    provider_name = (provider_name or LLM_PROVIDER).lower()
    provider_cls = PROVIDERS.get(provider_name)
    if provider_cls is None:
        raise ValueError(
            f"Unknown provider: {provider_name}. Use one of: {', '.join(PROVIDERS)}"
        )
    return provider_cls(model=model or LLM_MODEL or DEFAULT_MODELS[provider_name])
