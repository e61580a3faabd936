"""Tool lookup table: model-facing name -> schema, kind and handler."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from deskpilot.core.llm.provider import ToolSchema
from deskpilot.integrations.types import IntegrationTool

if TYPE_CHECKING:
    from deskpilot.settings import RunSettings
    from deskpilot.tools.context import ToolContext
    from deskpilot.tools.result import ToolResult

ToolHandler = Callable[[dict[str, Any], "ToolContext"], Awaitable["ToolResult"]]


class ToolKind(Enum):
    BUILTIN = "builtin"  # Handled in-process
    INTEGRATION = "integration"  # Forwarded to the integration router
    TERMINAL = "terminal"  # Ends the run with its output


@dataclass
class ToolEntry:
    schema: ToolSchema
    kind: ToolKind
    handler: ToolHandler | None = None
    display_name: str = ""

    @property
    def name(self) -> str:
        return self.schema.name


class ToolRegistry:
    """Registered tools in registration order."""

    def __init__(self) -> None:
        self._entries: dict[str, ToolEntry] = {}

    def register(
        self,
        schema: ToolSchema,
        handler: ToolHandler,
        *,
        kind: ToolKind = ToolKind.BUILTIN,
        display_name: str = "",
    ) -> ToolEntry:
        if schema.name in self._entries:
            raise ValueError(f"Tool already registered: {schema.name}")
        entry = ToolEntry(schema, kind, handler, display_name or schema.name)
        self._entries[schema.name] = entry
        return entry

    def register_integration(self, tool: IntegrationTool) -> ToolEntry:
        """Register (or refresh) an integration tool under its qualified name."""
        schema = ToolSchema(
            name=tool.qualified_name,
            description=tool.description or f"{tool.name} ({tool.server_name})",
            parameters=tool.input_schema or {"type": "object", "properties": {}},
        )
        entry = ToolEntry(schema, ToolKind.INTEGRATION, None, _humanize(tool.name))
        self._entries[schema.name] = entry
        return entry

    def sync_integrations(self, tools: list[IntegrationTool]) -> None:
        """Replace integration entries with the router's current tool list."""
        for name in [n for n, e in self._entries.items() if e.kind is ToolKind.INTEGRATION]:
            del self._entries[name]
        for tool in tools:
            self.register_integration(tool)

    def get(self, name: str) -> ToolEntry | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def entries(self) -> list[ToolEntry]:
        return list(self._entries.values())

    def schemas(self, settings: RunSettings | None = None) -> list[ToolSchema]:
        """Schemas offered to the model; disabled tools are left out."""
        return [
            entry.schema
            for entry in self._entries.values()
            if settings is None or settings.is_enabled(entry.name)
        ]

    def search(self, query: str, limit: int = 5, *, kinds: tuple[ToolKind, ...] | None = None) -> list[ToolEntry]:
        """Entries whose name or description contain the most query terms."""
        terms = [t for t in query.lower().split() if t]
        scored: list[tuple[int, int, ToolEntry]] = []
        for order, entry in enumerate(self._entries.values()):
            if kinds is not None and entry.kind not in kinds:
                continue
            text = f"{entry.name} {entry.schema.description}".lower()
            score = sum(1 for term in terms if term in text)
            if score:
                scored.append((-score, order, entry))
        scored.sort(key=lambda s: (s[0], s[1]))
        return [entry for _, _, entry in scored[:limit]]

    def display_name(self, name: str) -> str:
        entry = self._entries.get(name)
        return entry.display_name if entry else _humanize(name)


def _humanize(name: str) -> str:
    words = name.replace("__", " ").replace("_", " ").strip().split()
    return " ".join(words).capitalize() if words else name
