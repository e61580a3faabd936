"""LLM provider protocol and conversation types."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str


@dataclass(frozen=True, slots=True)
class ImagePart:
    """A base64-encoded image."""

    data: str
    media_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


ContentPart = TextPart | ImagePart


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Message:
    """A message in an LLM conversation.

    Attributes:
        role: The role (system, user, assistant, tool)
        content: Plain text, or a tuple of text/image parts
        tool_calls: Tool calls carried by an assistant message
        tool_call_id: For tool messages, the id of the originating call
        originator: Who produced this message, e.g. "user", "agent",
            "tool:{name}", "state"
    """

    role: Role
    content: str | tuple[ContentPart, ...] = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    originator: str | None = None

    @property
    def text(self) -> str:
        """Text content with image parts dropped."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def images(self) -> list[ImagePart]:
        if isinstance(self.content, str):
            return []
        return [p for p in self.content if isinstance(p, ImagePart)]


@dataclass(frozen=True, slots=True)
class ToolSchema:
    """JSON-schema declaration of a tool offered to the model."""

    name: str
    description: str
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(slots=True)
class StreamChunk:
    """A chunk from a streaming LLM response.

    Text arrives incrementally; tool calls are delivered fully assembled on
    the final chunk.
    """

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    is_final: bool = False
    finish_reason: str | None = None


@dataclass(slots=True)
class CompletionResult:
    """Result from a non-streaming completion."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers."""

    @property
    def model(self) -> str:
        """The model identifier being used."""
        ...

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion (non-streaming)."""
        ...

    def stream(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion.

        Yields:
            StreamChunk objects; the last one has is_final=True
        """
        ...
