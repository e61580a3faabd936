"""External integration type definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

# Separator between server name and tool name in the model-facing tool name
NAMESPACE_SEPARATOR = "__"


class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass
class IntegrationTool:
    """A tool exposed by an integration server."""

    name: str  # Name as the server knows it
    description: str
    input_schema: dict[str, Any]
    server_name: str

    @property
    def qualified_name(self) -> str:
        """Name offered to the model: <server>__<tool>."""
        return f"{self.server_name}{NAMESPACE_SEPARATOR}{self.name}"


@dataclass
class IntegrationResult:
    """Result of invoking an integration tool."""

    success: bool
    content: list[dict[str, Any]] = field(default_factory=list)
    structured_content: dict[str, Any] | None = None
    is_error: bool = False
    error_message: str | None = None

    def text(self) -> str:
        """Concatenated text blocks."""
        return "\n".join(
            item.get("text", "") for item in self.content if item.get("type") == "text"
        )

    def images(self) -> list[str]:
        return [item["data"] for item in self.content if item.get("type") == "image" and item.get("data")]


@runtime_checkable
class IntegrationRouter(Protocol):
    """Lists and invokes external integration tools."""

    def list_tools(self) -> list[IntegrationTool]: ...

    async def invoke(self, name: str, arguments: dict[str, Any]) -> IntegrationResult: ...
