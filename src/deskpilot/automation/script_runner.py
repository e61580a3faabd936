"""Subprocess execution for shell commands and Python snippets.

Every run has a hard timeout; on expiry the process is killed and a
"timeout" result is returned instead of hanging the agent loop.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from dataclasses import dataclass

from deskpilot.logging import get_logger

log = get_logger("scripts")

OUTPUT_LIMIT = 50000


@dataclass
class ScriptResult:
    """Result of a script execution.

    Attributes:
        command: The command line that was executed.
        exit_code: Process exit code, or None if killed on timeout.
        output: Combined stdout/stderr (may be truncated).
        status: "ok", "error" or "timeout".
        duration_ms: Execution duration in milliseconds.
    """

    command: str
    exit_code: int | None
    output: str
    status: str
    duration_ms: float
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class ScriptRunner:
    """Runs commands with asyncio subprocesses and a hard timeout."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        cwd: str | None = None,
        output_limit: int = OUTPUT_LIMIT,
    ) -> None:
        self._timeout = timeout
        self._cwd = cwd
        self._output_limit = output_limit

    async def execute(
        self,
        argv: list[str],
        *,
        stdin: str | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> ScriptResult:
        """Run argv and capture merged output."""
        start = time.perf_counter()
        command = " ".join(argv)
        limit = timeout if timeout is not None else self._timeout

        process_env = os.environ.copy()
        if env:
            process_env.update(env)

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=self._cwd,
                env=process_env,
            )
        except FileNotFoundError:
            return ScriptResult(command, 127, f"Command not found: {argv[0]}", "error", elapsed())
        except PermissionError:
            return ScriptResult(command, 126, f"Permission denied: {argv[0]}", "error", elapsed())
        except OSError as e:
            return ScriptResult(command, 1, f"OS error: {e}", "error", elapsed())

        try:
            stdout_data, _ = await asyncio.wait_for(
                process.communicate(stdin.encode("utf-8") if stdin is not None else None),
                timeout=limit,
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass
            log.warning("Killed %s after %ss", argv[0], limit)
            return ScriptResult(command, None, f"Command timed out after {limit}s", "timeout", elapsed())

        output = stdout_data.decode("utf-8", errors="replace")
        truncated = len(output) > self._output_limit
        if truncated:
            output = output[: self._output_limit] + "\n... (output truncated)"

        status = "ok" if process.returncode == 0 else "error"
        return ScriptResult(command, process.returncode, output, status, elapsed(), truncated)

    async def run_shell(self, command: str, *, timeout: float | None = None) -> ScriptResult:
        shell = os.environ.get("SHELL", "/bin/sh") if sys.platform != "win32" else "cmd"
        argv = [shell, "/c", command] if sys.platform == "win32" else [shell, "-c", command]
        return await self.execute(argv, timeout=timeout)

    async def run_python(self, code: str, *, timeout: float | None = None) -> ScriptResult:
        return await self.execute([sys.executable, "-"], stdin=code, timeout=timeout)
