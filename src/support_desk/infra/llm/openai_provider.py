"""OpenAI LLM provider for support_desk.

This module provides the OpenAI implementation of LLM and embedding interfaces.
"""

import base64
import json
from typing import Any, Self

from openai import AsyncOpenAI, OpenAIError

from support_desk.config import LLMSettings
from support_desk.errors import InternalError
from support_desk.interfaces.embedding import EmbeddingServiceInterface
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
    "OpenAIProvider",
]

logger = get_logger(__name__)


def _data_url(part: PromptPart) -> str:
    encoded = base64.b64encode(part.data or b"").decode("ascii")
    return f"data:{part.mime_type or 'application/octet-stream'};base64,{encoded}"


def _content_part(part: PromptPart) -> dict[str, Any]:
    if part.type == "image":
        url = _data_url(part) if part.data is not None else part.url
        return {"type": "image_url", "image_url": {"url": url}}
    if part.type == "file":
        if part.data is None:
            # Chat completions only accept inline file data
            return {"type": "text", "text": f"File: {part.url}"}
        return {
            "type": "file",
            "file": {"filename": part.filename or "file", "file_data": _data_url(part)},
        }
    return {"type": "text", "text": part.text or ""}


def _to_openai_message(message: PromptMessage) -> dict[str, Any]:
    if message.role == "tool":
        return {"role": "tool", "tool_call_id": message.tool_call_id, "content": message.text}

    if message.role == "assistant":
        payload: dict[str, Any] = {"role": "assistant", "content": message.text or None}
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in message.tool_calls
            ]
        return payload

    if all(p.type == "text" for p in message.parts):
        return {"role": "user", "content": message.text}
    return {"role": "user", "content": [_content_part(p) for p in message.parts]}


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("tool_arguments_invalid", arguments=raw[:200])
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIProvider(LLMInterface, EmbeddingServiceInterface):
    """OpenAI implementation of LLM and embedding interfaces.

    Provides reply generation, tool calling, document extraction and
    embedding generation using OpenAI's API.
    """

    config_class = LLMSettings

    def __init__(self, settings: LLMSettings) -> None:
        """Initialize OpenAI provider.

        Args:
            settings: LLM configuration settings
        """
        self._settings = settings
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        self._client = AsyncOpenAI(api_key=api_key)
        self._models = {
            ModelTier.DEFAULT: settings.model,
            ModelTier.FAST: settings.fast_model,
            ModelTier.DOCUMENT: settings.document_model,
        }
        self._embedding_model = settings.embedding_model
        self._embedding_dimensions = settings.embedding_dimensions

    @classmethod
    async def from_config(cls, config: LLMSettings) -> Self:
        """Factory method for SupportDesk instantiation.

        Args:
            config: LLM settings

        Returns:
            OpenAIProvider instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with LLM settings

        Returns:
            OpenAIProvider instance
        """
        settings = LLMSettings(**config)
        return cls(settings)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    # Embedding interface
    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text."""
        response = await self._client.embeddings.create(
            model=self._embedding_model,
            input=text,
            dimensions=self._embedding_dimensions,
        )
        return response.data[0].embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts."""
        if not texts:
            return []
        response = await self._client.embeddings.create(
            model=self._embedding_model,
            input=texts,
            dimensions=self._embedding_dimensions,
        )
        sorted_data = sorted(response.data, key=lambda x: x.index)
        return [item.embedding for item in sorted_data]

    # LLM interface
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
            "messages": [
                {"role": "system", "content": system_prompt},
                *(_to_openai_message(m) for m in messages),
            ],
            "temperature": self._settings.temperature,
        }
        if tools:
            request["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
                for tool in tools
            ]

        try:
            response = await self._client.chat.completions.create(**request)
        except OpenAIError as e:
            logger.error("llm_request_failed", provider="openai", model=model, error=str(e))
            raise InternalError("Model request failed") from e

        message = response.choices[0].message
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_parse_arguments(call.function.arguments),
            )
            for call in message.tool_calls or []
        ]
        return ModelTurn(text=message.content or "", tool_calls=tool_calls)
