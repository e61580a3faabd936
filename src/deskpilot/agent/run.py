"""Per-request run state and cancellation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from deskpilot.geometry import CoordinateConvention
from deskpilot.settings import RunSettings


class LoopState(Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    THINKING = "thinking"
    TOOL_DISPATCH = "tool_dispatch"
    DONE = "done"
    CANCELLED = "cancelled"
    FATAL = "fatal"


class SessionCounter:
    """Monotonic counter bumped on every cancel().

    A run captures the value at start; any later bump cancels it.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> int:
        self._value += 1
        return self._value

    def token(self) -> CancellationToken:
        return CancellationToken(self, self._value)


class CancellationToken:
    def __init__(self, counter: SessionCounter, captured: int) -> None:
        self._counter = counter
        self._captured = captured

    @property
    def cancelled(self) -> bool:
        return self._counter.value != self._captured


@dataclass
class ActionLogEntry:
    tool: str
    args: dict[str, Any]
    timestamp: float = field(default_factory=time.time)


@dataclass
class Run:
    """One user request from run() entry to exit."""

    query: str
    token: CancellationToken
    settings: RunSettings = field(default_factory=RunSettings)
    target_app: str | None = None
    selected_text: str | None = None
    convention: CoordinateConvention = CoordinateConvention.PIXEL
    tools_used: list[str] = field(default_factory=list)
    action_log: list[ActionLogEntry] = field(default_factory=list)
    computer_use_approved: bool = False
    iterations: int = 0
    started_at: float = field(default_factory=time.time)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def record(self, tool: str, args: dict[str, Any]) -> None:
        self.tools_used.append(tool)
        self.action_log.append(ActionLogEntry(tool, dict(args)))
