"""Dispatches tool calls to handlers and normalizes their results."""

from __future__ import annotations

from deskpilot.actions.spec import ActionParseError
from deskpilot.core.llm.provider import Message, Role, ToolCall
from deskpilot.errors import DeskpilotError, ToolExecutionError, UnknownToolError
from deskpilot.integrations.auth import detect_auth_required
from deskpilot.logging import get_logger
from deskpilot.tools.context import ToolContext
from deskpilot.tools.registry import ToolKind
from deskpilot.tools.result import ToolResult

log = get_logger("tools")


class ToolExecutor:
    """Turns one ToolCall into exactly one ToolResult.

    Handler exceptions never escape; they become failed results carrying the
    error text. Cancellation (asyncio.CancelledError) is not intercepted.
    """

    def __init__(self, context: ToolContext) -> None:
        self.context = context

    async def execute(self, call: ToolCall) -> ToolResult:
        entry = self.context.registry.get(call.name)
        if entry is None:
            log.warning("Model called unknown tool %s", call.name)
            return ToolResult.fail(str(UnknownToolError(call.name)))
        if not self.context.settings.is_enabled(call.name):
            return ToolResult.fail(f"Tool {call.name} is disabled in settings")

        log.debug("Executing %s(%s)", call.name, call.arguments)
        try:
            if entry.kind is ToolKind.INTEGRATION:
                return await self._invoke_integration(call)
            assert entry.handler is not None
            return await entry.handler(call.arguments, self.context)
        except (DeskpilotError, ActionParseError) as e:
            log.info("Tool %s failed: %s", call.name, e)
            return ToolResult.fail(str(e))
        except Exception as e:
            log.error("Tool %s raised %s: %s", call.name, type(e).__name__, e)
            return ToolResult.fail(f"{type(e).__name__}: {e}")

    async def _invoke_integration(self, call: ToolCall) -> ToolResult:
        router = self.context.router
        if router is None:
            raise ToolExecutionError(call.name, "no integration router is connected")

        result = await router.invoke(call.name, call.arguments)
        auth = detect_auth_required(result)
        if auth is not None:
            log.info("Integration %s requires auth for %s", call.name, auth.toolkit)
            return ToolResult(
                success=False,
                error=f"Authentication required for {auth.toolkit}",
                auth=auth,
            )

        text = result.text()
        if not result.success or result.is_error:
            return ToolResult.fail(result.error_message or text or "Integration call failed")
        return ToolResult.ok(text or "Done", images=result.images())

    @staticmethod
    def to_message(call: ToolCall, result: ToolResult) -> Message:
        """Tool message answering call; image attachments are sent separately."""
        return Message(role=Role.TOOL, content=result.to_text(), tool_call_id=call.id)
