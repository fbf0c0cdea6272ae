"""LLM interface for support_desk.

This module defines the Protocol for text generation, used for answer
synthesis, reply enhancement, document extraction and the support agent.
"""

from typing import ClassVar, Protocol, runtime_checkable

from support_desk.models.llm import ModelTier, ModelTurn, PromptMessage, ToolSpec

__all__ = [
    "LLMInterface",
]


@runtime_checkable
class LLMInterface(Protocol):
    """Contract for LLM interactions."""

    config_class: ClassVar[type | None] = None

    async def generate(
        self,
        system_prompt: str,
        messages: list[PromptMessage],
        tier: ModelTier = ModelTier.DEFAULT,
    ) -> str:
        """Generate a text reply.

        Args:
            system_prompt: Fixed instruction for the model
            messages: Conversation so far; parts may include images or files
            tier: Which configured model to use

        Returns:
            Generated text
        """
        ...

    async def generate_with_tools(
        self,
        system_prompt: str,
        messages: list[PromptMessage],
        tools: list[ToolSpec],
        tier: ModelTier = ModelTier.DEFAULT,
    ) -> ModelTurn:
        """Run one model turn with tools available.

        Args:
            system_prompt: Agent instructions
            messages: Conversation so far including earlier tool results
            tools: Tools the model may call
            tier: Which configured model to use

        Returns:
            Text and/or requested tool calls
        """
        ...
