"""MCP transport factory for stdio, streamable-http and sse servers."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, AsyncContextManager

if TYPE_CHECKING:
    from deskpilot.config.schema import IntegrationServerConfig


def expand_env_vars(values: dict[str, str]) -> dict[str, str]:
    """Expand ${VAR} values from the environment (missing -> "")."""
    result = {}
    for key, value in values.items():
        if value.startswith("${") and value.endswith("}"):
            result[key] = os.environ.get(value[2:-1], "")
        else:
            result[key] = value
    return result


def create_transport(
    config: IntegrationServerConfig,
) -> AsyncContextManager[tuple[Any, ...]]:
    """Create the transport context manager for a server.

    Raises:
        ValueError: Unknown transport or missing command/url.
    """
    if config.transport == "stdio":
        if not config.command:
            raise ValueError(f"stdio transport requires 'command' for server '{config.name}'")

        from mcp.client.stdio import StdioServerParameters, stdio_client

        env = dict(os.environ)
        env.update(expand_env_vars(config.env))
        params = StdioServerParameters(
            command=config.command[0],
            args=config.command[1:] + config.args,
            env=env,
        )
        return stdio_client(params)

    headers = {k: v for k, v in expand_env_vars(config.headers).items() if v} or None

    if config.transport == "streamable-http":
        if not config.url:
            raise ValueError(f"streamable-http transport requires 'url' for server '{config.name}'")

        from mcp.client.streamable_http import streamablehttp_client

        return streamablehttp_client(config.url, headers=headers)

    if config.transport == "sse":
        if not config.url:
            raise ValueError(f"sse transport requires 'url' for server '{config.name}'")

        from mcp.client.sse import sse_client

        return sse_client(config.url, headers=headers, timeout=config.timeout)

    raise ValueError(f"Unknown transport: {config.transport}")
