"""MCP-backed integration router."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mcp import types
from mcp.client.session import ClientSession

from deskpilot.config.schema import IntegrationConnectMode
from deskpilot.integrations.transport import create_transport
from deskpilot.integrations.types import (
    NAMESPACE_SEPARATOR,
    ConnectionStatus,
    IntegrationResult,
    IntegrationTool,
)
from deskpilot.logging import get_logger

if TYPE_CHECKING:
    from deskpilot.config.schema import IntegrationServerConfig, IntegrationsConfig

log = get_logger("integrations")


def convert_content(blocks: list[Any]) -> list[dict[str, Any]]:
    """Convert MCP content blocks into plain dicts."""
    content: list[dict[str, Any]] = []
    for block in blocks:
        if isinstance(block, types.TextContent):
            content.append({"type": "text", "text": block.text})
        elif isinstance(block, types.ImageContent):
            content.append({"type": "image", "data": block.data, "mime_type": block.mimeType})
        elif isinstance(block, types.EmbeddedResource):
            resource = block.resource
            content.append({
                "type": "resource",
                "uri": str(getattr(resource, "uri", "")) or None,
                "text": getattr(resource, "text", None),
            })
    return content


@dataclass
class MCPConnection:
    """An MCP server connection and the tools it advertises."""

    config: IntegrationServerConfig
    session: ClientSession | None = None
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    tools: list[IntegrationTool] = field(default_factory=list)
    error_message: str | None = None
    _stack: AsyncExitStack | None = None

    @property
    def name(self) -> str:
        return self.config.name

    async def connect(self) -> None:
        """Open the transport, initialize the session and list tools."""
        self.status = ConnectionStatus.CONNECTING
        stack = AsyncExitStack()
        try:
            streams = await stack.enter_async_context(create_transport(self.config))
            session = await stack.enter_async_context(ClientSession(streams[0], streams[1]))
            await asyncio.wait_for(session.initialize(), timeout=self.config.timeout)
            listed = await session.list_tools()
        except BaseException as e:
            await stack.aclose()
            self.status = ConnectionStatus.ERROR
            self.error_message = str(e)
            log.error("Failed to connect to integration server '%s': %s", self.name, e)
            raise

        self._stack = stack
        self.session = session
        self.tools = [
            IntegrationTool(
                name=t.name,
                description=t.description or "",
                input_schema=t.inputSchema or {"type": "object", "properties": {}},
                server_name=self.name,
            )
            for t in listed.tools
        ]
        self.status = ConnectionStatus.CONNECTED
        log.info("Connected to '%s' with %d tools", self.name, len(self.tools))

    async def disconnect(self) -> None:
        if self._stack is not None:
            try:
                await self._stack.aclose()
            except Exception as e:
                log.warning("Error closing '%s': %s", self.name, e)
            self._stack = None
        self.session = None
        self.tools = []
        self.status = ConnectionStatus.DISCONNECTED

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> IntegrationResult:
        if self.session is None or self.status != ConnectionStatus.CONNECTED:
            return IntegrationResult(
                success=False,
                is_error=True,
                error_message=f"Server '{self.name}' is not connected",
            )
        try:
            result = await self.session.call_tool(tool_name, arguments)
        except Exception as e:
            log.error("Tool call failed: %s.%s: %s", self.name, tool_name, e)
            return IntegrationResult(success=False, is_error=True, error_message=str(e))

        return IntegrationResult(
            success=not result.isError,
            content=convert_content(result.content),
            structured_content=result.structuredContent,
            is_error=bool(result.isError),
        )


class MCPIntegrationRouter:
    """Routes namespaced tool calls (<server>__<tool>) to MCP connections."""

    def __init__(self, config: IntegrationsConfig | None = None) -> None:
        self._config = config
        self.connections: dict[str, MCPConnection] = {}

    async def connect(self, server: IntegrationServerConfig) -> MCPConnection:
        existing = self.connections.get(server.name)
        if existing is not None:
            if existing.status == ConnectionStatus.CONNECTED:
                return existing
            await existing.disconnect()
        connection = MCPConnection(config=server)
        self.connections[server.name] = connection
        await connection.connect()
        return connection

    async def connect_configured(self) -> None:
        """Connect every server whose mode is "auto"; failures are logged."""
        if self._config is None:
            return
        for server in self._config.servers:
            if server.connect is not IntegrationConnectMode.AUTO:
                continue
            try:
                await self.connect(server)
            except Exception as e:
                log.warning("Skipping integration server '%s': %s", server.name, e)

    async def close(self) -> None:
        for connection in list(self.connections.values()):
            await connection.disconnect()
        self.connections.clear()

    def list_tools(self) -> list[IntegrationTool]:
        tools: list[IntegrationTool] = []
        for connection in self.connections.values():
            if connection.status == ConnectionStatus.CONNECTED:
                tools.extend(connection.tools)
        return tools

    async def invoke(self, name: str, arguments: dict[str, Any]) -> IntegrationResult:
        server_name, sep, tool_name = name.partition(NAMESPACE_SEPARATOR)
        connection = self.connections.get(server_name) if sep else None
        if connection is None:
            return IntegrationResult(
                success=False,
                is_error=True,
                error_message=f"No integration server for tool '{name}'",
            )
        return await connection.call_tool(tool_name, arguments)
