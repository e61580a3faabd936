"""Message builders for the agent loop."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from deskpilot.core.llm.provider import ContentPart, ImagePart, Message, Role, TextPart
from deskpilot.extraction.formatting import format_for_agent

if TYPE_CHECKING:
    from deskpilot.agent.history import RunRecord
    from deskpilot.extraction.state import AppState

USER_REQUEST_HEADER = "=== User Request ==="
RECENT_ACTIVITY_HEADER = "=== Recent Activity ==="
UPDATED_STATE_PREFIX = "Updated state:\n"


def format_recent_activity(records: Sequence[RunRecord]) -> str:
    if not records:
        return ""
    return "\n".join([RECENT_ACTIVITY_HEADER, *(f"- {r.summary()}" for r in records)])


def _with_screenshot(text: str, state: AppState) -> str | tuple[ContentPart, ...]:
    if state.screenshot:
        return (TextPart(text), ImagePart(state.screenshot))
    return text


def build_user_message(
    query: str,
    state: AppState,
    *,
    memory_context: str = "",
    recent_activity: str = "",
) -> Message:
    """First user message: memories, recent runs, state, then the request."""
    parts: list[str] = []
    for block in (memory_context, recent_activity):
        if block:
            parts.extend([block, ""])
    parts.extend([format_for_agent(state), "", USER_REQUEST_HEADER, query])
    return Message(role=Role.USER, content=_with_screenshot("\n".join(parts), state), originator="user")


def build_state_update(state: AppState) -> Message:
    text = UPDATED_STATE_PREFIX + format_for_agent(state)
    return Message(role=Role.USER, content=_with_screenshot(text, state), originator="system")


def build_image_message(tool_name: str, images: Sequence[str]) -> Message:
    """Attachments returned by a tool, sent after its tool message."""
    content: list[ContentPart] = [TextPart(f"Images returned by {tool_name}:")]
    content.extend(ImagePart(data) for data in images)
    return Message(role=Role.USER, content=tuple(content), originator="tool")


def transcript(messages: Sequence[Message], limit: int = 20000) -> str:
    """Plain-text rendering of the conversation for the memory flush."""
    lines = []
    for message in messages:
        if message.role is Role.SYSTEM:
            continue
        text = message.text
        if message.tool_calls:
            text += " " + ", ".join(f"[{c.name}]" for c in message.tool_calls)
        if text.strip():
            lines.append(f"{message.role.value}: {text.strip()}")
    joined = "\n".join(lines)
    return joined[-limit:]
