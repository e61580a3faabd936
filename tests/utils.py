"""Shared test doubles for deskpilot tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from deskpilot.core.llm.provider import CompletionResult, Message, StreamChunk, ToolCall, ToolSchema
from deskpilot.errors import AutomationError
from deskpilot.extraction.state import (
    AccessibilitySnapshot,
    AppState,
    BrowserSnapshot,
    Tier,
    UIElement,
)
from deskpilot.geometry import ScreenGeometry
from deskpilot.integrations.types import IntegrationResult, IntegrationTool

SCREENSHOT = "iVBORw0KGgo="


class FakeBackend:
    """In-memory HostAutomationBackend that records every call.

    Attributes:
        calls: (method, args) tuples in call order
        fail_on: Method names that raise AutomationError
    """

    def __init__(
        self,
        *,
        frontmost: str | None = "Notes",
        selection: str | None = None,
        geometry: ScreenGeometry | None = None,
    ) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.frontmost = frontmost
        self.selection = selection
        self.geometry = geometry or ScreenGeometry(1920, 1080)
        self.screenshot: str = SCREENSHOT
        self.window_counts: dict[str, int] = {}
        self.window_count_sequence: list[int] = []
        self.script_outputs: list[str] = []
        self.fail_on: set[str] = set()

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise AutomationError(name, "simulated failure")

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for method, args in self.calls if method == name]

    @property
    def actions(self) -> list[str]:
        """Calls that change the screen, without polling reads."""
        passive = {"frontmost_application", "window_count", "screen_geometry", "read_current_selection"}
        return [method for method, _ in self.calls if method not in passive]

    async def click(self, x: int, y: int) -> None:
        self._record("click", x, y)

    async def right_click(self, x: int, y: int) -> None:
        self._record("right_click", x, y)

    async def double_click(self, x: int, y: int) -> None:
        self._record("double_click", x, y)

    async def move_mouse(self, x: int, y: int) -> None:
        self._record("move_mouse", x, y)

    async def drag(self, x1: int, y1: int, x2: int, y2: int) -> None:
        self._record("drag", x1, y1, x2, y2)

    async def scroll(self, direction: str, amount: int) -> None:
        self._record("scroll", direction, amount)

    async def type_text(self, text: str) -> None:
        self._record("type_text", text)

    async def press_key(self, combo: str) -> None:
        self._record("press_key", combo)

    async def focus_application(self, name: str) -> None:
        self._record("focus_application", name)
        self.frontmost = name

    async def run_host_script(self, code: str) -> str:
        self._record("run_host_script", code)
        return self.script_outputs.pop(0) if self.script_outputs else ""

    async def capture_screenshot(self, width: int | None = None) -> str:
        self._record("capture_screenshot", width)
        return self.screenshot

    async def read_current_selection(self, app: str | None = None) -> str | None:
        self._record("read_current_selection", app)
        return self.selection

    async def paste_text(self, text: str) -> None:
        self._record("paste_text", text)

    async def paste_image(self, data: bytes) -> None:
        self._record("paste_image", data)

    async def frontmost_application(self) -> str | None:
        self._record("frontmost_application")
        return self.frontmost

    async def window_count(self, app: str) -> int:
        self._record("window_count", app)
        if self.window_count_sequence:
            return self.window_count_sequence.pop(0)
        return self.window_counts.get(app, 1)

    async def screen_geometry(self) -> ScreenGeometry:
        self._record("screen_geometry")
        return self.geometry


class FakeClock:
    """Virtual clock: sleep() advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


Turn = tuple[str, list[ToolCall]]


class ScriptedProvider:
    """LLMProvider that replays canned turns.

    Each stream() call consumes one (text, tool_calls) turn. When the turns
    run out the last one is repeated.
    """

    def __init__(
        self,
        turns: list[Turn],
        *,
        model: str = "claude-sonnet-4-20250514",
        flush_reply: str = "[NO_FLUSH]",
    ) -> None:
        self._turns = list(turns)
        self._model = model
        self.flush_reply = flush_reply
        self.calls: list[list[Message]] = []
        self.tool_lists: list[list[ToolSchema] | None] = []
        self.completions: list[list[Message]] = []
        self.on_stream: Callable[[int], None] | None = None

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        self.completions.append(list(messages))
        return CompletionResult(content=self.flush_reply)

    async def stream(
        self,
        messages: list[Message],
        *,
        tools: list[ToolSchema] | None = None,
        max_tokens: int = 4096,
    ):
        index = len(self.calls)
        self.calls.append(list(messages))
        self.tool_lists.append(tools)
        text, tool_calls = self._turns[min(index, len(self._turns) - 1)]
        if text:
            yield StreamChunk(text=text)
        if self.on_stream is not None:
            self.on_stream(index)
        yield StreamChunk(tool_calls=list(tool_calls), is_final=True, finish_reason="stop")


def call(name: str, call_id: str = "call_1", /, **arguments: Any) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


def make_state(
    formatted: str = "App: Notes\nWindow: Untitled",
    *,
    tier: Tier = Tier.ACCESSIBILITY,
    screenshot: str | None = None,
) -> AppState:
    return AppState(
        tier=tier,
        method=tier.name.lower(),
        formatted=formatted,
        app_name="Notes",
        window_title="Untitled",
        screenshot=screenshot,
    )


class FakeBrowserProbe:
    def __init__(self, snapshot: BrowserSnapshot | None = None, error: Exception | None = None) -> None:
        self.snapshot = snapshot or BrowserSnapshot()
        self.error = error
        self.calls: list[str] = []

    async def probe(self, app_name: str) -> BrowserSnapshot:
        self.calls.append(app_name)
        if self.error:
            raise self.error
        return self.snapshot


class FakeScripting:
    def __init__(self, output: str = "", apps: set[str] | None = None) -> None:
        self.output = output
        self.apps = apps
        self.calls: list[str] = []

    def supports(self, app_name: str) -> bool:
        return self.apps is None or app_name in self.apps

    async def extract(self, app_name: str) -> str:
        self.calls.append(app_name)
        return self.output


class FakeAccessibility:
    def __init__(self, snapshot: AccessibilitySnapshot | None = None) -> None:
        self.snapshot = snapshot or AccessibilitySnapshot(success=False, error="not trusted")
        self.calls: list[str] = []

    async def read(self, app_name: str) -> AccessibilitySnapshot:
        self.calls.append(app_name)
        return self.snapshot


def elements(*roles: str) -> tuple[UIElement, ...]:
    return tuple(UIElement(role=role, label=f"{role} {i}") for i, role in enumerate(roles, start=1))


class FakeRouter:
    """IntegrationRouter that replays canned results in call order."""

    def __init__(self, tools: list[IntegrationTool], results: list[IntegrationResult]) -> None:
        self.tools = tools
        self.results = list(results)
        self.invocations: list[tuple[str, dict[str, Any]]] = []

    def list_tools(self) -> list[IntegrationTool]:
        return self.tools

    async def invoke(self, name: str, arguments: dict[str, Any]) -> IntegrationResult:
        self.invocations.append((name, arguments))
        return self.results.pop(0)
