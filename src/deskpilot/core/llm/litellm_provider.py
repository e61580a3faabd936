"""LiteLLM provider implementation.

Supports any litellm model string:
- Anthropic: "claude-sonnet-4-20250514"
- Google: "gemini/gemini-2.5-flash"
- OpenAI: "gpt-4o"

Tool calls are streamed by litellm as per-index deltas (id and name first,
then argument fragments); they are assembled here and delivered whole on the
final chunk.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import litellm

from deskpilot.core.llm.provider import (
    CompletionResult,
    ImagePart,
    Message,
    Role,
    StreamChunk,
    TextPart,
    ToolCall,
    ToolSchema,
)
from deskpilot.logging import TRACE, get_logger

log = get_logger("llm")


def message_to_dict(message: Message) -> dict[str, Any]:
    """Convert a Message to the OpenAI chat format litellm expects."""
    if message.role == Role.TOOL:
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": message.text,
        }

    if isinstance(message.content, str):
        content: Any = message.content
    else:
        content = []
        for part in message.content:
            if isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
            elif isinstance(part, ImagePart):
                content.append({"type": "image_url", "image_url": {"url": part.data_url}})

    result: dict[str, Any] = {"role": message.role.value, "content": content}

    if message.tool_calls:
        result["content"] = content or None
        result["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": json.dumps(call.arguments),
                },
            }
            for call in message.tool_calls
        ]

    return result


def parse_arguments(raw: str | None, tool_name: str) -> dict[str, Any]:
    """Decode a tool call's JSON arguments; malformed input becomes {}."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Invalid JSON arguments for tool %s: %.200s", tool_name, raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


class ToolCallAssembler:
    """Accumulates streamed tool-call deltas keyed by their index."""

    def __init__(self) -> None:
        self._pending: dict[int, _PendingToolCall] = {}

    def add(self, delta: Any) -> None:
        index = getattr(delta, "index", None)
        if index is None:
            index = len(self._pending)
        pending = self._pending.setdefault(index, _PendingToolCall())
        if getattr(delta, "id", None):
            pending.id = delta.id
        function = getattr(delta, "function", None)
        if function is not None:
            if getattr(function, "name", None):
                pending.name = function.name
            if getattr(function, "arguments", None):
                pending.arguments += function.arguments

    def build(self) -> list[ToolCall]:
        calls = []
        for index in sorted(self._pending):
            pending = self._pending[index]
            if not pending.name:
                continue
            calls.append(
                ToolCall(
                    id=pending.id or f"call_{index}",
                    name=pending.name,
                    arguments=parse_arguments(pending.arguments, pending.name),
                )
            )
        return calls


class LiteLLMProvider:
    """LLM provider using litellm for multi-provider support.

    Usage:
        provider = LiteLLMProvider("claude-sonnet-4-20250514")
        provider = LiteLLMProvider("gemini/gemini-2.5-flash", api_key=key)
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._api_base = api_base
        self._temperature = temperature
        self._kwargs = kwargs

    @property
    def model(self) -> str:
        return self._model

    def _build_kwargs(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        """Build kwargs for litellm call."""
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [message_to_dict(m) for m in messages],
            "max_tokens": max_tokens,
            "stream": stream,
            **self._kwargs,
        }
        if tools:
            kwargs["tools"] = [t.to_openai() for t in tools]
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        log.log(
            TRACE,
            "Request to %s: %d messages, %d tools, max_tokens=%d",
            self._model,
            len(messages),
            len(tools or []),
            max_tokens,
        )
        return kwargs

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion (non-streaming)."""
        kwargs = self._build_kwargs(messages, tools=tools, max_tokens=max_tokens, stream=False)
        response = await litellm.acompletion(**kwargs)

        choice = response.choices[0]
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=parse_arguments(call.function.arguments, call.function.name),
            )
            for call in (getattr(choice.message, "tool_calls", None) or [])
        ]

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            content=choice.message.content or "",
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    async def stream(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion.

        Text deltas are yielded as they arrive, followed by one final chunk
        carrying the assembled tool calls and the stop reason.
        """
        kwargs = self._build_kwargs(messages, tools=tools, max_tokens=max_tokens, stream=True)
        response = await litellm.acompletion(**kwargs)

        assembler = ToolCallAssembler()
        finish_reason: str | None = None

        async for chunk in response:
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            if choice.finish_reason:
                finish_reason = choice.finish_reason
            delta = choice.delta
            if delta is None:
                continue
            for call_delta in getattr(delta, "tool_calls", None) or []:
                assembler.add(call_delta)
            if delta.content:
                yield StreamChunk(text=delta.content)

        yield StreamChunk(
            tool_calls=assembler.build(),
            is_final=True,
            finish_reason=finish_reason,
        )


def create_provider(
    model: str = "claude-sonnet-4-20250514",
    **kwargs: Any,
) -> LiteLLMProvider:
    """Create an LLM provider with default settings."""
    return LiteLLMProvider(model, **kwargs)
