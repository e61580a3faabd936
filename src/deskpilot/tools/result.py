"""Normalized tool results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deskpilot.integrations.auth import AuthRequirement


@dataclass
class ToolResult:
    """What a tool call produced.

    Attributes:
        success: Whether the tool did what was asked.
        output: Text for the model on success.
        error: Text for the model on failure.
        images: base64 PNG attachments (screenshots).
        terminal: The call ends the run (final answer).
        auth: Set when an integration reported that authentication is needed.
    """

    success: bool
    output: str = ""
    error: str | None = None
    images: list[str] = field(default_factory=list)
    terminal: bool = False
    auth: AuthRequirement | None = None

    @classmethod
    def ok(cls, output: str, images: list[str] | None = None) -> ToolResult:
        return cls(success=True, output=output, images=list(images or []))

    @classmethod
    def fail(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)

    def to_text(self) -> str:
        if self.success:
            return self.output or "Done"
        return f"Error: {self.error or 'unknown error'}"
