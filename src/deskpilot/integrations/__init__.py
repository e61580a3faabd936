"""External integrations (MCP servers) and auth-required detection."""

from deskpilot.integrations.auth import AuthRequirement, detect_auth_required
from deskpilot.integrations.client import MCPConnection, MCPIntegrationRouter
from deskpilot.integrations.types import (
    NAMESPACE_SEPARATOR,
    ConnectionStatus,
    IntegrationResult,
    IntegrationRouter,
    IntegrationTool,
)

__all__ = [
    "AuthRequirement",
    "detect_auth_required",
    "MCPConnection",
    "MCPIntegrationRouter",
    "NAMESPACE_SEPARATOR",
    "ConnectionStatus",
    "IntegrationResult",
    "IntegrationRouter",
    "IntegrationTool",
]
