"""Conversation intelligence: completion providers and reply interpretation."""

from __future__ import annotations

from intentforge.intelligence.conversation import (
    ConversationAgent,
    ParsedReply,
    build_system_prompt,
    parse_response,
)
from intentforge.intelligence.providers import (
    AnthropicProvider,
    CompletionProvider,
    MockProvider,
    OllamaProvider,
    OpenAIProvider,
    get_provider,
)

__all__ = [
    "AnthropicProvider",
    "CompletionProvider",
    "ConversationAgent",
    "MockProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "ParsedReply",
    "build_system_prompt",
    "get_provider",
    "parse_response",
]
