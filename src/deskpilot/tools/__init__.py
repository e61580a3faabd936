"""Tool registry, built-in tool handlers and the executor."""

from deskpilot.tools.builtin import DISPLAY_NAMES, FINAL_ANSWER, register_builtin_tools
from deskpilot.tools.context import ToolContext, WebSearch
from deskpilot.tools.executor import ToolExecutor
from deskpilot.tools.registry import ToolEntry, ToolKind, ToolRegistry
from deskpilot.tools.result import ToolResult
from deskpilot.tools.web import DuckDuckGoSearch, SerperImageSearch

__all__ = [
    "DISPLAY_NAMES",
    "FINAL_ANSWER",
    "DuckDuckGoSearch",
    "SerperImageSearch",
    "ToolContext",
    "ToolEntry",
    "ToolExecutor",
    "ToolKind",
    "ToolRegistry",
    "ToolResult",
    "WebSearch",
    "register_builtin_tools",
]
