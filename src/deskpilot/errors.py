"""Exception types shared across deskpilot.

Only ConfigurationError and cancellation reach the caller of AgentLoop.run();
everything raised during tool execution is turned into a tool result string
by the ToolExecutor so the model can react to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class DeskpilotError(Exception):
    """Base class for deskpilot errors."""


@dataclass
class ConfigurationError(DeskpilotError):
    """Raised when the run cannot start (e.g. missing LLM credentials)."""

    message: str
    env_var: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class AgentBusyError(DeskpilotError):
    """Raised when run() is called while another run is active."""

    active_query: str

    def __str__(self) -> str:
        return f"Agent is busy with another request: {self.active_query!r}"


@dataclass
class ApprovalBusyError(DeskpilotError):
    """Raised when a second approval (or auth wait) is requested while one is pending."""

    pending: str  # Name of the tool already waiting
    requested: str

    def __str__(self) -> str:
        return f"Cannot request approval for '{self.requested}': '{self.pending}' is still pending"


@dataclass
class AutomationError(DeskpilotError):
    """A host automation primitive failed."""

    operation: str
    reason: str

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.reason}"


@dataclass
class AutomationTimeout(AutomationError):
    """A host automation primitive exceeded its hard timeout."""

    timeout: float = 0.0

    def __str__(self) -> str:
        return f"{self.operation} timed out after {self.timeout:g}s"


@dataclass
class ScreenshotCaptureError(AutomationError):
    """The last-resort screenshot could not be captured."""


@dataclass
class ActionSequenceError(DeskpilotError):
    """One action in a chain failed; completed actions are not rolled back."""

    index: int  # 1-based position of the failing action
    reason: str
    completed: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        message = f"Failed at action {self.index}: {self.reason}"
        if self.completed:
            message += f"\nCompleted before failure: {' → '.join(self.completed)}"
        return message


@dataclass
class ToolExecutionError(DeskpilotError):
    """A tool handler could not complete."""

    tool: str
    reason: str

    def __str__(self) -> str:
        return f"{self.tool}: {self.reason}"


@dataclass
class UnknownToolError(ToolExecutionError):
    """The model called a tool that is not registered."""

    reason: str = "unknown tool"

    def __str__(self) -> str:
        return f"Unknown tool: {self.tool}"


@dataclass
class ScriptTimeoutError(DeskpilotError):
    """A script or shell command was killed after exceeding its timeout."""

    command: str
    timeout: float

    def __str__(self) -> str:
        return f"Script timed out after {self.timeout:g}s: {self.command}"
