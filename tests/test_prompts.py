"""Tests for prompt loading, message builders and UI event payloads."""

from __future__ import annotations

from datetime import datetime

from deskpilot.agent.events import approval_payload, auth_payload
from deskpilot.agent.history import RunRecord
from deskpilot.agent.prompts import (
    build_image_message,
    build_state_update,
    build_user_message,
    format_recent_activity,
    transcript,
)
from deskpilot.approval import ApprovalRequest, AuthRequest
from deskpilot.core.llm.provider import ImagePart, Message, Role, ToolCall
from deskpilot.prompts import SYSTEM_PROMPT, list_prompts, load_prompt
from tests.utils import SCREENSHOT, make_state


class TestPromptFiles:
    def test_system_prompt_loaded(self) -> None:
        assert "system" in list_prompts()
        assert load_prompt("system") == SYSTEM_PROMPT
        assert "computer_actions" in SYSTEM_PROMPT


class TestMessageBuilders:
    def test_user_message_order(self) -> None:
        message = build_user_message(
            "reply to Dana",
            make_state(),
            memory_context="=== Relevant Memories ===\n- Dana is my manager",
            recent_activity="=== Recent Activity ===\n- earlier run",
        )
        text = message.text
        assert message.role is Role.USER
        assert message.originator == "user"
        assert text.index("Relevant Memories") < text.index("Recent Activity") < text.index("App: Notes")
        assert text.endswith("=== User Request ===\nreply to Dana")
        assert message.images == []

    def test_screenshot_attached(self) -> None:
        message = build_user_message("look", make_state(screenshot=SCREENSHOT))
        assert message.images == [ImagePart(SCREENSHOT)]

    def test_state_update(self) -> None:
        message = build_state_update(make_state())
        assert message.originator == "system"
        assert message.text.startswith("Updated state:\n=== Current Application State ===")

    def test_image_message(self) -> None:
        message = build_image_message("take_screenshot", ["A", "B"])
        assert message.text == "Images returned by take_screenshot:"
        assert [p.data for p in message.images] == ["A", "B"]

    def test_recent_activity(self) -> None:
        record = RunRecord("r1", datetime(2025, 3, 14, 9, 0), "open mail", "Done")
        assert format_recent_activity([record]) == '=== Recent Activity ===\n- 2025-03-14 09:00 "open mail"'
        assert format_recent_activity([]) == ""


class TestTranscript:
    def test_skips_system_and_lists_tool_calls(self) -> None:
        messages = [
            Message(Role.SYSTEM, "You are a copilot"),
            Message(Role.USER, "open mail"),
            Message(Role.ASSISTANT, "Opening", tool_calls=(ToolCall("c1", "focus_app", {"name": "Mail"}),)),
            Message(Role.TOOL, "Focused Mail", tool_call_id="c1"),
        ]
        assert transcript(messages) == (
            "user: open mail\nassistant: Opening [focus_app]\ntool: Focused Mail"
        )

    def test_keeps_the_tail(self) -> None:
        messages = [Message(Role.USER, "x" * 50)]
        assert transcript(messages, limit=10) == "x" * 10


class TestEventPayloads:
    def test_approval_payload(self) -> None:
        request = ApprovalRequest(
            tool_name="gmail__send_email",
            description="Send an email",
            args={"to": "dana@example.com"},
            is_external_integration=True,
        )
        assert approval_payload(request) == {
            "toolName": "gmail__send_email",
            "toolDescription": "Send an email",
            "args": {"to": "dana@example.com"},
            "isComposio": True,
            "displayName": "gmail__send_email",
            "details": {},
        }

    def test_auth_payload(self) -> None:
        request = AuthRequest("gmail__send_email", "gmail", "https://connect.example/gmail")
        assert auth_payload(request) == {"toolkit": "gmail", "redirectUrl": "https://connect.example/gmail"}
