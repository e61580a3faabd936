"""Tests for the timed backend wrapper and the subprocess script runner."""

from __future__ import annotations

import asyncio
import sys

import pytest

from deskpilot.automation import HostAutomationBackend, ScriptRunner, TimedBackend
from deskpilot.errors import AutomationError, AutomationTimeout
from tests.utils import FakeBackend


class SlowBackend(FakeBackend):
    async def click(self, x: int, y: int) -> None:
        await asyncio.sleep(5)

    async def run_host_script(self, code: str) -> str:
        await asyncio.sleep(0.05)
        return "finished"

    async def read_current_selection(self, app: str | None = None) -> str | None:
        raise PermissionError("accessibility not granted")


# =============================================================================
# TimedBackend
# =============================================================================


class TestTimedBackend:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(FakeBackend(), HostAutomationBackend)
        assert isinstance(TimedBackend(FakeBackend()), HostAutomationBackend)

    @pytest.mark.asyncio
    async def test_passes_calls_through(self) -> None:
        inner = FakeBackend(selection="hello")
        backend = TimedBackend(inner)

        await backend.click(1, 2)
        assert await backend.read_current_selection("Notes") == "hello"

        assert inner.called("click") == [(1, 2)]
        assert inner.called("read_current_selection") == [("Notes",)]
        assert backend.inner is inner

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        backend = TimedBackend(SlowBackend(), timeout=0.01)
        with pytest.raises(AutomationTimeout) as exc_info:
            await backend.click(1, 2)
        assert str(exc_info.value) == "click timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_scripts_use_their_own_timeout(self) -> None:
        backend = TimedBackend(SlowBackend(), timeout=0.01, script_timeout=5.0)
        assert await backend.run_host_script("return 1") == "finished"

    @pytest.mark.asyncio
    async def test_other_errors_wrapped(self) -> None:
        backend = TimedBackend(SlowBackend())
        with pytest.raises(AutomationError) as exc_info:
            await backend.read_current_selection()
        assert str(exc_info.value) == "read_current_selection failed: accessibility not granted"

    @pytest.mark.asyncio
    async def test_automation_errors_unchanged(self) -> None:
        inner = FakeBackend()
        inner.fail_on = {"type_text"}
        with pytest.raises(AutomationError, match="type_text failed: simulated failure"):
            await TimedBackend(inner).type_text("hi")


# =============================================================================
# ScriptRunner
# =============================================================================


class TestScriptRunner:
    @pytest.mark.asyncio
    async def test_python_stdout_and_stderr(self) -> None:
        result = await ScriptRunner().run_python("import sys\nprint('out')\nprint('err', file=sys.stderr)")
        assert result.ok
        assert result.exit_code == 0
        assert "out" in result.output
        assert "err" in result.output

    @pytest.mark.asyncio
    async def test_nonzero_exit(self) -> None:
        result = await ScriptRunner().run_python("raise SystemExit(3)")
        assert result.status == "error"
        assert result.exit_code == 3

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self) -> None:
        result = await ScriptRunner().run_python("import time\ntime.sleep(10)", timeout=0.5)
        assert result.status == "timeout"
        assert result.exit_code is None

    @pytest.mark.asyncio
    async def test_command_not_found(self) -> None:
        result = await ScriptRunner().execute(["deskpilot-no-such-binary"])
        assert result.exit_code == 127
        assert result.output == "Command not found: deskpilot-no-such-binary"

    @pytest.mark.asyncio
    async def test_output_truncated(self) -> None:
        result = await ScriptRunner(output_limit=10).run_python("print('x' * 100)")
        assert result.truncated
        assert result.output == "x" * 10 + "\n... (output truncated)"

    @pytest.mark.asyncio
    async def test_env_overrides(self) -> None:
        result = await ScriptRunner().execute(
            [sys.executable, "-c", "import os; print(os.environ['DESKPILOT_TEST'])"],
            env={"DESKPILOT_TEST": "42"},
        )
        assert result.output.strip() == "42"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell")
    @pytest.mark.asyncio
    async def test_shell(self) -> None:
        result = await ScriptRunner().run_shell("echo hello && exit 0")
        assert result.ok
        assert result.output.strip() == "hello"
