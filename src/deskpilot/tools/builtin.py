"""Built-in tool handlers and their model-facing schemas.

Handlers raise on failure; the ToolExecutor turns exceptions into
error results so the model can react to them.
"""

from __future__ import annotations

from typing import Any

from deskpilot.actions.spec import ActionKind, ActionParseError, ActionSpec, parse_action, parse_actions
from deskpilot.automation.script_runner import ScriptResult, ScriptRunner
from deskpilot.core.llm.provider import ToolSchema
from deskpilot.errors import ScriptTimeoutError, ToolExecutionError
from deskpilot.extraction.formatting import format_for_agent
from deskpilot.logging import get_logger
from deskpilot.tools.context import ToolContext
from deskpilot.tools.registry import ToolHandler, ToolKind, ToolRegistry
from deskpilot.tools.result import ToolResult

log = get_logger("tools")

FINAL_ANSWER = "final_answer"

# Status line shown while a tool runs
DISPLAY_NAMES = {
    "computer_actions": "Executing actions",
    "computer": "Using computer",
    "focus_app": "Switching app",
    "get_state": "Checking state",
    "take_screenshot": "Taking screenshot",
    "run_host_script": "Running script",
    "run_shell": "Running command",
    "execute_python": "Running Python",
    "replace_selected_text": "Replacing text",
    "insert_image": "Inserting image",
    "web_search": "Searching the web",
    "memory_search": "Searching memory",
    "memory_write": "Saving memory",
    "search_tools": "Searching tools",
    "final_answer": "Answering",
}
DEFAULT_DISPLAY_NAME = "Taking action"


def _require(args: dict[str, Any], key: str, tool: str) -> str:
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ToolExecutionError(tool, f"missing required argument '{key}'")
    return str(value)


# =============================================================================
# Computer control
# =============================================================================


async def computer_actions(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    raw = args.get("actions")
    if not isinstance(raw, list) or not raw:
        raise ActionParseError("'actions' must be a non-empty list")
    summary = await ctx.sequencer.run(parse_actions(raw))
    return ToolResult.ok(summary.text, images=summary.screenshots)


async def computer(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    """Single action in the model-native shape, e.g. {"action": "left_click", "coordinate": [x, y]}."""
    action = parse_action(args)
    summary = await ctx.sequencer.run([action])
    if action.kind is ActionKind.SCREENSHOT:
        return ToolResult.ok("Screenshot captured", images=summary.screenshots)
    return ToolResult.ok(summary.text, images=summary.screenshots)


async def focus_app(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    name = args.get("name") or args.get("app")
    if not name:
        raise ToolExecutionError("focus_app", "missing required argument 'name'")
    await ctx.sequencer.run([ActionSpec(ActionKind.ACTIVATE, app=str(name))])
    return ToolResult.ok(f"Focused {name}")


async def get_state(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    state = await ctx.extractor.extract()
    images = [state.screenshot] if state.screenshot else []
    return ToolResult.ok(format_for_agent(state), images=images)


async def take_screenshot(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    geometry = await ctx.backend.screen_geometry()
    width, height = geometry.screenshot_size
    image = await ctx.backend.capture_screenshot(width)
    return ToolResult.ok(f"Screenshot captured ({width}x{height})", images=[image])


async def replace_selected_text(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    text = args.get("text")
    if text is None:
        raise ToolExecutionError("replace_selected_text", "missing required argument 'text'")
    await ctx.backend.paste_text(str(text))
    return ToolResult.ok(f"Replaced selected text ({len(str(text))} characters)")


async def insert_image(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    query = _require(args, "query", "insert_image")
    if ctx.image_search is None:
        raise ToolExecutionError("insert_image", "image search is not configured")
    data = await ctx.image_search.find(query)
    await ctx.backend.paste_image(data)
    return ToolResult.ok(f'Inserted image for "{query}"')


# =============================================================================
# Scripts and commands
# =============================================================================


async def run_host_script(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    script = args.get("script") or args.get("code")
    if not script:
        raise ToolExecutionError("run_host_script", "missing required argument 'script'")
    output = (await ctx.backend.run_host_script(str(script))).strip()
    if output.lower().startswith("error:"):
        return ToolResult.fail(output)
    return ToolResult.ok(output or "Script executed")


def _timeout_seconds(args: dict[str, Any], ctx: ToolContext) -> float | None:
    # Models pass milliseconds
    raw = args.get("timeout")
    if isinstance(raw, (int, float)) and raw > 0:
        return raw / 1000
    return ctx.script_timeout


def _runner(tool: str, ctx: ToolContext) -> ScriptRunner:
    if ctx.script_runner is None:
        raise ToolExecutionError(tool, "script execution is not available")
    return ctx.script_runner


def _script_result(result: ScriptResult, timeout: float | None) -> ToolResult:
    if result.status == "timeout":
        raise ScriptTimeoutError(result.command, timeout or 0.0)
    output = result.output.strip() or "(no output)"
    if not result.ok:
        return ToolResult.fail(f"Exit code {result.exit_code}\n{output}")
    return ToolResult.ok(output)


async def run_shell(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    command = _require(args, "command", "run_shell")
    timeout = _timeout_seconds(args, ctx)
    result = await _runner("run_shell", ctx).run_shell(command, timeout=timeout)
    return _script_result(result, timeout)


async def execute_python(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    code = _require(args, "code", "execute_python")
    timeout = _timeout_seconds(args, ctx)
    result = await _runner("execute_python", ctx).run_python(code, timeout=timeout)
    return _script_result(result, timeout)


# =============================================================================
# Information
# =============================================================================


async def web_search(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    query = _require(args, "query", "web_search")
    if ctx.web_search is None:
        raise ToolExecutionError("web_search", "web search is not configured")
    try:
        return ToolResult.ok(await ctx.web_search.search(query))
    except Exception as e:
        log.warning("Web search for %r failed: %s", query, e)
        return ToolResult.fail(f"Search failed: {e}")


async def memory_search(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    query = _require(args, "query", "memory_search")
    if ctx.memory is None:
        return ToolResult.fail("Memory is disabled")
    limit = args.get("max_results") or args.get("limit") or 5
    hits = ctx.memory.search(query, int(limit))
    if not hits:
        return ToolResult.ok("No relevant memories found.")
    return ToolResult.ok("\n".join(f"[{hit.source}] {hit.text}" for hit in hits))


async def memory_write(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    content = _require(args, "content", "memory_write")
    if ctx.memory is None:
        return ToolResult.fail("Memory is disabled")
    path = ctx.memory.write(content)
    return ToolResult.ok(f"Saved to {path.name}")


async def search_tools(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    query = _require(args, "query", "search_tools")
    matches = ctx.registry.search(query, kinds=(ToolKind.INTEGRATION,))
    matches = [m for m in matches if ctx.settings.is_enabled(m.name)]
    if not matches:
        return ToolResult.ok("No matching tools found.")
    return ToolResult.ok("\n".join(f"- {m.name}: {m.schema.description}" for m in matches))


async def final_answer(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    answer = args.get("answer") or args.get("text") or ""
    return ToolResult(success=True, output=str(answer), terminal=True)


# =============================================================================
# Schemas
# =============================================================================


def _schema(name: str, description: str, properties: dict[str, Any], required: list[str]) -> ToolSchema:
    return ToolSchema(
        name=name,
        description=description,
        parameters={"type": "object", "properties": properties, "required": required},
    )


_STRING = {"type": "string"}

BUILTIN_TOOLS: list[tuple[ToolSchema, ToolHandler, ToolKind]] = [
    (
        _schema(
            "computer_actions",
            "Execute a sequence of actions with automatic timing. PREFERRED for multi-step UI "
            "tasks. Action types: activate, hotkey, type, key, click, right_click, double_click, "
            "mouse_move, scroll, drag, wait, run_script, insert_image, screenshot.",
            {
                "actions": {
                    "type": "array",
                    "description": "Actions in order. Each has 'action' plus: app (activate), "
                    "key and modifiers (hotkey/key), text (type), coordinate [x, y] (pointer), "
                    "direction and amount (scroll), start_coordinate and end_coordinate (drag), "
                    "duration in seconds (wait), script (run_script), query (insert_image).",
                    "items": {"type": "object"},
                }
            },
            ["actions"],
        ),
        computer_actions,
        ToolKind.BUILTIN,
    ),
    (
        _schema(
            "computer",
            "Perform a single mouse or keyboard action on the screen.",
            {
                "action": {"type": "string", "description": "left_click, right_click, double_click, "
                           "mouse_move, left_click_drag, type, key, scroll, wait, screenshot"},
                "coordinate": {"type": "array", "items": {"type": "number"}},
                "start_coordinate": {"type": "array", "items": {"type": "number"}},
                "end_coordinate": {"type": "array", "items": {"type": "number"}},
                "text": _STRING,
                "scroll_direction": _STRING,
                "scroll_amount": {"type": "integer"},
                "duration": {"type": "number"},
            },
            ["action"],
        ),
        computer,
        ToolKind.BUILTIN,
    ),
    (
        _schema("focus_app", "Bring an application to the foreground",
                {"name": {"type": "string", "description": "Name of the application to focus"}}, ["name"]),
        focus_app,
        ToolKind.BUILTIN,
    ),
    (_schema("get_state", "Re-extract the current application state", {}, []), get_state, ToolKind.BUILTIN),
    (_schema("take_screenshot", "Capture a screenshot of the screen", {}, []), take_screenshot, ToolKind.BUILTIN),
    (
        _schema("run_host_script", "Execute a raw host automation script (AppleScript on macOS)",
                {"script": {"type": "string", "description": "The script source"}}, ["script"]),
        run_host_script,
        ToolKind.BUILTIN,
    ),
    (
        _schema("run_shell", "Run a shell command and return its output",
                {"command": _STRING, "timeout": {"type": "number", "description": "Timeout in milliseconds"}},
                ["command"]),
        run_shell,
        ToolKind.BUILTIN,
    ),
    (
        _schema("execute_python", "Execute Python code. Returns stdout and stderr.",
                {"code": {"type": "string", "description": "Python code to execute"},
                 "timeout": {"type": "number", "description": "Timeout in milliseconds. Default: 30000"}},
                ["code"]),
        execute_python,
        ToolKind.BUILTIN,
    ),
    (
        _schema(
            "replace_selected_text",
            "Replace the currently selected text in the target app with new text. Use this when "
            "the user has text selected (shown as USER SELECTED TEXT in state).",
            {"text": {"type": "string", "description": "The replacement text"}},
            ["text"],
        ),
        replace_selected_text,
        ToolKind.BUILTIN,
    ),
    (
        _schema("insert_image", "Search Google Images and insert the best result at cursor position.",
                {"query": {"type": "string", "description": "Image search query"}}, ["query"]),
        insert_image,
        ToolKind.BUILTIN,
    ),
    (
        _schema("web_search", "Search the web for information using DuckDuckGo. Returns facts and information.",
                {"query": {"type": "string", "description": "The search query"}}, ["query"]),
        web_search,
        ToolKind.BUILTIN,
    ),
    (
        _schema("memory_search",
                "Search long-term memory (MEMORY.md and daily logs) for prior decisions, preferences or facts.",
                {"query": _STRING, "max_results": {"type": "integer"}}, ["query"]),
        memory_search,
        ToolKind.BUILTIN,
    ),
    (
        _schema("memory_write", "Save a durable fact about the user or their work to long-term memory.",
                {"content": _STRING}, ["content"]),
        memory_write,
        ToolKind.BUILTIN,
    ),
    (
        _schema("search_tools", "Search the connected integration tools by keyword.",
                {"query": _STRING}, ["query"]),
        search_tools,
        ToolKind.BUILTIN,
    ),
    (
        _schema(FINAL_ANSWER, "Give the final answer to the user and finish the request.",
                {"answer": _STRING}, ["answer"]),
        final_answer,
        ToolKind.TERMINAL,
    ),
]


def register_builtin_tools(registry: ToolRegistry) -> ToolRegistry:
    for schema, handler, kind in BUILTIN_TOOLS:
        registry.register(
            schema,
            handler,
            kind=kind,
            display_name=DISPLAY_NAMES.get(schema.name, DEFAULT_DISPLAY_NAME),
        )
    return registry
