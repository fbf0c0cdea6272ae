"""LLM provider implementations for support_desk."""

from support_desk.infra.llm.anthropic_provider import AnthropicProvider
from support_desk.infra.llm.openai_provider import OpenAIProvider

__all__ = ["OpenAIProvider", "AnthropicProvider"]
