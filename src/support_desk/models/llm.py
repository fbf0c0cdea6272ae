"""Language model boundary models for support_desk.

These describe prompts, tool declarations and model turns independently of
any vendor SDK; providers translate them to their own request formats.
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

__all__ = [
    "ModelTier",
    "ModelTurn",
    "PromptMessage",
    "PromptPart",
    "ToolCall",
    "ToolSpec",
]


class ModelTier(StrEnum):
    """Which configured model a request should run on."""

    DEFAULT = "default"
    FAST = "fast"
    DOCUMENT = "document"


class PromptPart(BaseModel, frozen=True):
    """One content part of a prompt message.

    Text parts carry ``text``. Image and file parts carry either a ``url``
    or raw ``data`` together with the ``mime_type``.
    """

    type: Literal["text", "image", "file"] = "text"
    text: str | None = None
    url: str | None = None
    data: bytes | None = None
    mime_type: str | None = None
    filename: str | None = None

    @classmethod
    def of_text(cls, text: str) -> "PromptPart":
        return cls(type="text", text=text)


class ToolCall(BaseModel, frozen=True):
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class PromptMessage(BaseModel, frozen=True):
    """One conversational turn sent to the model.

    ``tool`` messages carry the result of a previous tool call and reference
    it through ``tool_call_id``.
    """

    role: Literal["user", "assistant", "tool"]
    parts: list[PromptPart] = Field(default_factory=list)
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_call_id: str | None = None

    @classmethod
    def user(cls, text: str) -> "PromptMessage":
        return cls(role="user", parts=[PromptPart.of_text(text)])

    @classmethod
    def assistant(cls, text: str) -> "PromptMessage":
        return cls(role="assistant", parts=[PromptPart.of_text(text)])

    @property
    def text(self) -> str:
        """Concatenated text parts."""
        return "\n".join(p.text for p in self.parts if p.type == "text" and p.text)


class ToolSpec(BaseModel, frozen=True):
    """Tool declaration offered to the model.

    Attributes:
        name: Tool name the model uses to call it
        description: What the tool does, shown to the model
        parameters: JSON schema of the arguments object
    """

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ModelTurn(BaseModel, frozen=True):
    """Model output: final text, tool calls, or both."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)
