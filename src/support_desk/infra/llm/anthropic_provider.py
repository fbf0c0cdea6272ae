"""Anthropic LLM provider for support_desk.

This module provides the Anthropic implementation of LLM interface.
Note: Anthropic does not provide embeddings, so this provider
requires a separate embedding service.
"""

import base64
from typing import Any, Self

from anthropic import AnthropicError, AsyncAnthropic

from support_desk.config import LLMSettings
from support_desk.errors import InternalError
from support_desk.interfaces.llm import LLMInterface
from support_desk.logging import get_logger
from support_desk.models.llm import (
    ModelTier,
    ModelTurn,
    PromptMessage,
    PromptPart,
    ToolCall,
    ToolSpec,
)

__all__ = [
    "AnthropicProvider",
]

logger = get_logger(__name__)

_DEFAULT_MODELS = {
    ModelTier.DEFAULT: "claude-sonnet-4-20250514",
    ModelTier.FAST: "claude-3-5-haiku-latest",
    ModelTier.DOCUMENT: "claude-sonnet-4-20250514",
}


def _source(part: PromptPart) -> dict[str, Any]:
    if part.data is not None:
        return {
            "type": "base64",
            "media_type": part.mime_type,
            "data": base64.b64encode(part.data).decode("ascii"),
        }
    return {"type": "url", "url": part.url}


def _content_block(part: PromptPart) -> dict[str, Any]:
    if part.type == "image":
        return {"type": "image", "source": _source(part)}
    if part.type == "file":
        return {"type": "document", "source": _source(part)}
    return {"type": "text", "text": part.text or ""}


def _to_anthropic_messages(messages: list[PromptMessage]) -> list[dict[str, Any]]:
    """Translate prompt messages; tool results become user turns.

    Consecutive tool results are merged into one user turn.
    """
    result: list[dict[str, Any]] = []
    for message in messages:
        if message.role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": message.tool_call_id,
                "content": message.text,
            }
            previous = result[-1] if result else None
            if (
                previous is not None
                and previous["role"] == "user"
                and isinstance(previous["content"], list)
                and all(b.get("type") == "tool_result" for b in previous["content"])
            ):
                previous["content"].append(block)
            else:
                result.append({"role": "user", "content": [block]})
            continue

        if message.role == "assistant":
            content: list[dict[str, Any]] = []
            if message.text:
                content.append({"type": "text", "text": message.text})
            content.extend(
                {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                for call in message.tool_calls
            )
            result.append({"role": "assistant", "content": content})
            continue

        result.append({"role": "user", "content": [_content_block(p) for p in message.parts]})
    return result


class AnthropicProvider(LLMInterface):
    """Anthropic implementation of LLM interface.

    Provides reply generation, tool calling and document extraction
    using Anthropic's Claude API.

    Note: This provider does NOT implement embedding generation.
    Use OpenAI or another embedding provider for embeddings.
    """

    config_class = LLMSettings

    def __init__(self, settings: LLMSettings, max_tokens: int = 4096) -> None:
        """Initialize Anthropic provider.

        Args:
            settings: LLM configuration settings
            max_tokens: Output token limit per request
        """
        self._settings = settings
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        self._client = AsyncAnthropic(api_key=api_key)
        self._max_tokens = max_tokens
        configured = {
            ModelTier.DEFAULT: settings.model,
            ModelTier.FAST: settings.fast_model,
            ModelTier.DOCUMENT: settings.document_model,
        }
        # Settings default to OpenAI model names
        self._models = {
            tier: name if name.startswith("claude") else _DEFAULT_MODELS[tier]
            for tier, name in configured.items()
        }

    @classmethod
    async def from_config(cls, config: LLMSettings) -> Self:
        """Factory method for SupportDesk instantiation.

        Args:
            config: LLM settings

        Returns:
            AnthropicProvider instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with LLM settings

        Returns:
            AnthropicProvider instance
        """
        settings = LLMSettings(**config)
        return cls(settings)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    async def generate(
        self,
        system_prompt: str,
        messages: list[PromptMessage],
        tier: ModelTier = ModelTier.DEFAULT,
    ) -> str:
        """Generate a text reply."""
        turn = await self._complete(system_prompt, messages, None, tier)
        return turn.text

    async def generate_with_tools(
        self,
        system_prompt: str,
        messages: list[PromptMessage],
        tools: list[ToolSpec],
        tier: ModelTier = ModelTier.DEFAULT,
    ) -> ModelTurn:
        """Run one model turn with tools available."""
        return await self._complete(system_prompt, messages, tools, tier)

    async def _complete(
        self,
        system_prompt: str,
        messages: list[PromptMessage],
        tools: list[ToolSpec] | None,
        tier: ModelTier,
    ) -> ModelTurn:
        model = self._models[tier]
        request: dict[str, Any] = {
            "model": model,
            "max_tokens": self._max_tokens,
            "system": system_prompt,
            "messages": _to_anthropic_messages(messages),
            "temperature": self._settings.temperature,
        }
        if tools:
            request["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.parameters,
                }
                for tool in tools
            ]

        try:
            response = await self._client.messages.create(**request)
        except AnthropicError as e:
            logger.error("llm_request_failed", provider="anthropic", model=model, error=str(e))
            raise InternalError("Model request failed") from e

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                arguments = block.input if isinstance(block.input, dict) else {}
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=arguments))
        return ModelTurn(text="".join(texts), tool_calls=tool_calls)
