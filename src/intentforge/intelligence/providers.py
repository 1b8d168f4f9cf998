"""Completion providers for the requirements conversation.

Every provider implements ``complete(system_prompt, messages) -> str``. The
HTTP providers talk to their APIs through httpx with retries and exponential
backoff on timeouts, connection errors and 5xx responses; every failure
surfaces as AIProviderError.

MockProvider is deterministic and needs no network: its first reply asks
clarifying questions, its second signals readiness to generate, and every
later reply asks for confirmation.

Example usage:
    >>> provider = get_provider("anthropic", config.ai)
    >>> text = await provider.complete(SYSTEM_PROMPT, conversation.messages)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
import structlog

from intentforge.config import AIConfig
from intentforge.errors import AIProviderError
from intentforge.models.conversation import Message, MessageRole

logger = structlog.get_logger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_OPENAI_MODEL = "gpt-4-turbo-preview"
DEFAULT_OLLAMA_MODEL = "llama3.1"
ANTHROPIC_VERSION = "2023-06-01"

MOCK_CLARIFICATION_REPLY = (
    "Thank you for describing your project! To help me create the best solution, "
    "I have a few clarifying questions:\n\n"
    "1. What is your preferred tech stack?\n"
    "2. Do you need user authentication?\n"
    "3. What is the expected scale (users per day)?\n\n"
    "Please answer these questions so I can design the perfect solution for you."
)

MOCK_READY_REPLY = (
    "Perfect! I now have all the information I need. I'll create:\n\n"
    "- A React frontend with a modern, responsive UI\n"
    "- Components for the features you described\n"
    "- Docker deployment configuration\n\n"
    "Ready to generate your project?"
)

MOCK_CONFIRM_REPLY = "I'm ready to generate your project. Please confirm to proceed."


class CompletionProvider(Protocol):
    """Text completion over a system prompt and message history."""

    name: str

    async def complete(self, system_prompt: str, messages: Sequence[Message]) -> str:
        ...


def _dialogue(messages: Sequence[Message]) -> list[dict[str, str]]:
    """User/assistant turns in API wire format; system messages dropped."""
    return [
        {"role": m.role.value, "content": m.content}
        for m in messages
        if m.role in (MessageRole.USER, MessageRole.ASSISTANT)
    ]


class MockProvider:
    """Deterministic provider keyed on how many replies it has given."""

    name = "mock"

    async def complete(self, system_prompt: str, messages: Sequence[Message]) -> str:
        replies = sum(1 for m in messages if m.role == MessageRole.ASSISTANT)
        if replies == 0:
            return MOCK_CLARIFICATION_REPLY
        if replies == 1:
            return MOCK_READY_REPLY
        return MOCK_CONFIRM_REPLY


class HTTPCompletionProvider:
    """Shared request/retry handling for the HTTP providers.

    Attributes:
        config: AI configuration (model, limits, URLs, timeout)
        max_retries: Retries after the first attempt on transient failures
        initial_backoff: First backoff delay in seconds, doubled per retry
    """

    name = "http"

    def __init__(
        self,
        config: AIConfig,
        max_retries: int = 2,
        initial_backoff: float = 1.0,
    ) -> None:
        self.config = config
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff

    @property
    def base_url(self) -> str:
        raise NotImplementedError

    async def _post(self, path: str, payload: dict[str, Any], headers: dict[str, str]) -> Any:
        """POST JSON and return the decoded body, retrying transient failures.

        Raises:
            AIProviderError: On timeout, connection failure or error status
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
        ) as client:
            for attempt in range(self.max_retries + 1):
                backoff = self.initial_backoff * (2**attempt)
                try:
                    logger.debug(
                        "completion_request",
                        provider=self.name,
                        attempt=attempt + 1,
                        message_count=len(payload.get("messages", [])),
                    )
                    response = await client.post(path, json=payload, headers=headers)
                except httpx.TimeoutException as e:
                    if attempt < self.max_retries:
                        logger.warning(
                            "completion_timeout_retry",
                            provider=self.name,
                            attempt=attempt + 1,
                            backoff_seconds=backoff,
                        )
                        await asyncio.sleep(backoff)
                        continue
                    logger.error("completion_timeout_exhausted", provider=self.name)
                    raise AIProviderError(
                        f"{self.name} request timed out after {self.max_retries + 1} attempts",
                        provider=self.name,
                        status_code=504,
                    ) from e
                except httpx.HTTPError as e:
                    if attempt < self.max_retries:
                        logger.warning(
                            "completion_connection_retry",
                            provider=self.name,
                            attempt=attempt + 1,
                            backoff_seconds=backoff,
                            error=str(e),
                        )
                        await asyncio.sleep(backoff)
                        continue
                    logger.error("completion_connection_failed", provider=self.name, error=str(e))
                    raise AIProviderError(
                        f"Unable to reach {self.name}: {e}", provider=self.name
                    ) from e

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise AIProviderError(
                            f"{self.name} returned invalid JSON", provider=self.name
                        ) from e

                if 500 <= response.status_code < 600 and attempt < self.max_retries:
                    logger.warning(
                        "completion_server_error_retry",
                        provider=self.name,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue

                logger.error(
                    "completion_api_error",
                    provider=self.name,
                    status_code=response.status_code,
                    body=response.text[:500],
                )
                raise AIProviderError(
                    f"{self.name} API error: HTTP {response.status_code}", provider=self.name
                )

        # Unreachable: the loop either returns or raises
        raise AIProviderError(f"{self.name} request failed", provider=self.name)


class AnthropicProvider(HTTPCompletionProvider):
    """Anthropic Messages API."""

    name = "anthropic"

    def __init__(self, config: AIConfig, api_key: str, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.api_key = api_key

    @property
    def base_url(self) -> str:
        return self.config.anthropic_url

    async def complete(self, system_prompt: str, messages: Sequence[Message]) -> str:
        data = await self._post(
            "/v1/messages",
            {
                "model": self.config.model or DEFAULT_ANTHROPIC_MODEL,
                "max_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
                "system": system_prompt,
                "messages": _dialogue(messages),
            },
            {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )
        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        if not text:
            raise AIProviderError("anthropic returned no text content", provider=self.name)
        return text


class OpenAIProvider(HTTPCompletionProvider):
    """OpenAI Chat Completions API."""

    name = "openai"

    def __init__(self, config: AIConfig, api_key: str, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self.api_key = api_key

    @property
    def base_url(self) -> str:
        return self.config.openai_url

    async def complete(self, system_prompt: str, messages: Sequence[Message]) -> str:
        data = await self._post(
            "/v1/chat/completions",
            {
                "model": self.config.model or DEFAULT_OPENAI_MODEL,
                "max_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
                "messages": [{"role": "system", "content": system_prompt}, *_dialogue(messages)],
            },
            {"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise AIProviderError("openai returned an unexpected payload", provider=self.name) from e
        if not text:
            raise AIProviderError("openai returned no text content", provider=self.name)
        return text


class OllamaProvider(HTTPCompletionProvider):
    """Local Ollama chat API; needs no credentials."""

    name = "ollama"

    @property
    def base_url(self) -> str:
        return self.config.ollama_url

    async def complete(self, system_prompt: str, messages: Sequence[Message]) -> str:
        data = await self._post(
            "/api/chat",
            {
                "model": self.config.model or DEFAULT_OLLAMA_MODEL,
                "stream": False,
                "options": {
                    "temperature": self.config.temperature,
                    "num_predict": self.config.max_tokens,
                },
                "messages": [{"role": "system", "content": system_prompt}, *_dialogue(messages)],
            },
            {},
        )
        text = (data.get("message") or {}).get("content") or ""
        if not text:
            raise AIProviderError("ollama returned no text content", provider=self.name)
        return text


PROVIDER_NAMES = ("anthropic", "openai", "ollama", "mock")


def get_provider(name: str, config: AIConfig) -> CompletionProvider:
    """Instantiate a provider by name.

    Args:
        name: Provider name (anthropic, openai, ollama, mock)
        config: AI configuration supplying credentials and limits

    Returns:
        The provider instance

    Raises:
        AIProviderError: For unknown names or missing credentials
    """
    key = name.lower()
    if key == "mock":
        return MockProvider()
    if key == "ollama":
        return OllamaProvider(config)
    if key == "anthropic":
        if not config.anthropic_api_key:
            raise AIProviderError(
                "Anthropic API key not configured", provider=key, status_code=400
            )
        return AnthropicProvider(config, config.anthropic_api_key)
    if key == "openai":
        if not config.openai_api_key:
            raise AIProviderError("OpenAI API key not configured", provider=key, status_code=400)
        return OpenAIProvider(config, config.openai_api_key)

    raise AIProviderError(
        f"Unsupported AI provider: {name}. Must be one of {', '.join(PROVIDER_NAMES)}",
        provider=name,
        status_code=400,
    )
