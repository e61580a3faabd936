"""Tests for the model catalogue, credentials and the LiteLLM provider.

Tests coverage for:
- src/deskpilot/core/llm/providers.py
- src/deskpilot/core/llm/credentials.py
- src/deskpilot/core/llm/litellm_provider.py
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from deskpilot.core.llm.credentials import get_api_key, list_models, require_credentials
from deskpilot.core.llm.litellm_provider import (
    LiteLLMProvider,
    ToolCallAssembler,
    create_provider,
    message_to_dict,
    parse_arguments,
)
from deskpilot.core.llm.provider import ImagePart, Message, Role, TextPart, ToolCall, ToolSchema
from deskpilot.core.llm.providers import (
    find_provider,
    get_context_length,
    get_model_config,
    get_provider_configs,
)
from deskpilot.errors import ConfigurationError

ACOMPLETION = "deskpilot.core.llm.litellm_provider.litellm.acompletion"


def delta(content=None, tool_calls=None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)


def chunk(content=None, tool_calls=None, finish_reason=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=delta(content, tool_calls), finish_reason=finish_reason)]
    )


def call_delta(index, id=None, name=None, arguments=None):
    return SimpleNamespace(index=index, id=id, function=SimpleNamespace(name=name, arguments=arguments))


async def stream_of(*chunks):
    for item in chunks:
        yield item


# =============================================================================
# Catalogue
# =============================================================================


class TestCatalogue:
    def test_providers_loaded(self) -> None:
        configs = get_provider_configs()
        assert {"anthropic", "google", "openai"} <= set(configs)
        assert configs["anthropic"].env_var == "ANTHROPIC_API_KEY"

    def test_find_by_exact_id(self) -> None:
        assert find_provider("gemini/gemini-2.5-flash").name == "google"

    def test_find_by_prefix(self) -> None:
        assert find_provider("claude-3-7-sonnet-latest").name == "anthropic"
        assert find_provider("gpt-4o-mini").name == "openai"

    def test_unknown_model(self) -> None:
        assert find_provider("llama-local") is None

    def test_context_length(self) -> None:
        assert get_context_length("claude-sonnet-4-20250514") == 200000
        assert get_context_length("llama-local") == 128000

    def test_capabilities(self) -> None:
        model = get_model_config("claude-sonnet-4-20250514")
        assert model is not None
        assert "computer_use" in model.capabilities


class TestCredentials:
    def test_require_credentials_returns_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert require_credentials("claude-sonnet-4-20250514") == "sk-test"

    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError) as exc_info:
            require_credentials("gpt-4o")
        assert exc_info.value.env_var == "OPENAI_API_KEY"
        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_blank_key_is_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "  ")
        with pytest.raises(ConfigurationError):
            require_credentials("gemini/gemini-2.5-pro")

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="No provider found"):
            require_credentials("llama-local")
        assert get_api_key("llama-local") is None

    def test_list_models_reports_availability(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        by_id = {m.model_id: m for m in list_models()}
        assert by_id["claude-sonnet-4-20250514"].available is True
        assert by_id["gpt-4o"].available is False


# =============================================================================
# Message conversion
# =============================================================================


class TestMessageToDict:
    def test_plain_text(self) -> None:
        assert message_to_dict(Message(Role.USER, "hi")) == {"role": "user", "content": "hi"}

    def test_image_parts(self) -> None:
        result = message_to_dict(Message(Role.USER, (TextPart("look"), ImagePart("AAAA"))))
        assert result["content"] == [
            {"type": "text", "text": "look"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
        ]

    def test_tool_message(self) -> None:
        result = message_to_dict(Message(Role.TOOL, "Done", tool_call_id="c1"))
        assert result == {"role": "tool", "tool_call_id": "c1", "content": "Done"}

    def test_assistant_tool_calls(self) -> None:
        message = Message(Role.ASSISTANT, "", tool_calls=(ToolCall("c1", "focus_app", {"name": "Mail"}),))
        result = message_to_dict(message)
        assert result["content"] is None
        assert result["tool_calls"][0]["function"] == {"name": "focus_app", "arguments": '{"name": "Mail"}'}


class TestParseArguments:
    def test_valid(self) -> None:
        assert parse_arguments('{"a": 1}', "t") == {"a": 1}

    @pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]"])
    def test_invalid_becomes_empty(self, raw) -> None:
        assert parse_arguments(raw, "t") == {}


class TestToolCallAssembler:
    def test_assembles_split_arguments(self) -> None:
        assembler = ToolCallAssembler()
        assembler.add(call_delta(0, id="call_a", name="focus_app", arguments='{"na'))
        assembler.add(call_delta(0, arguments='me": "Safari"}'))
        assembler.add(call_delta(1, id="call_b", name="get_state"))

        calls = assembler.build()

        assert calls == [
            ToolCall("call_a", "focus_app", {"name": "Safari"}),
            ToolCall("call_b", "get_state", {}),
        ]

    def test_missing_id_is_generated(self) -> None:
        assembler = ToolCallAssembler()
        assembler.add(call_delta(2, name="get_state"))
        assert assembler.build()[0].id == "call_2"

    def test_nameless_calls_dropped(self) -> None:
        assembler = ToolCallAssembler()
        assembler.add(call_delta(0, arguments="{}"))
        assert assembler.build() == []


# =============================================================================
# LiteLLMProvider
# =============================================================================


class TestLiteLLMProvider:
    def test_create_provider(self) -> None:
        provider = create_provider("gpt-4o", api_base="http://localhost:4000")
        assert isinstance(provider, LiteLLMProvider)
        assert provider.model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_complete(self) -> None:
        response = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content="- fact", tool_calls=None),
                    finish_reason="stop",
                )
            ],
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=2, total_tokens=12),
        )
        provider = LiteLLMProvider("gpt-4o", temperature=0.0)
        with patch(ACOMPLETION, new=AsyncMock(return_value=response)) as acompletion:
            result = await provider.complete([Message(Role.USER, "hi")], max_tokens=64)

        assert result.content == "- fact"
        assert result.usage["total_tokens"] == 12
        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 64
        assert kwargs["temperature"] == 0.0
        assert kwargs["stream"] is False
        assert "tools" not in kwargs

    @pytest.mark.asyncio
    async def test_stream_text_then_tool_calls(self) -> None:
        response = stream_of(
            chunk("I'll "),
            chunk("open it."),
            chunk(tool_calls=[call_delta(0, id="c1", name="focus_app", arguments='{"name":')]),
            chunk(tool_calls=[call_delta(0, arguments=' "Mail"}')], finish_reason="tool_calls"),
        )
        provider = LiteLLMProvider("claude-sonnet-4-20250514")
        tools = [ToolSchema("focus_app", "Focus an app")]
        with patch(ACOMPLETION, new=AsyncMock(return_value=response)) as acompletion:
            chunks = [c async for c in provider.stream([Message(Role.USER, "open mail")], tools=tools)]

        assert [c.text for c in chunks if c.text] == ["I'll ", "open it."]
        final = chunks[-1]
        assert final.is_final
        assert final.finish_reason == "tool_calls"
        assert final.tool_calls == [ToolCall("c1", "focus_app", {"name": "Mail"})]
        kwargs = acompletion.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["tools"][0]["function"]["name"] == "focus_app"
