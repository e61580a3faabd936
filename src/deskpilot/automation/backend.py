"""Host automation backend protocol and a hard-timeout wrapper.

The concrete mechanism that clicks a pixel or reads a selection lives
outside this package. Everything in the orchestration layer talks to a
HostAutomationBackend, normally wrapped in a TimedBackend so that every call
has a hard timeout and every failure arrives as an AutomationError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol, TypeVar, runtime_checkable

from deskpilot.errors import AutomationError, AutomationTimeout
from deskpilot.geometry import ScreenGeometry
from deskpilot.logging import get_logger

log = get_logger("automation")

T = TypeVar("T")


@runtime_checkable
class HostAutomationBackend(Protocol):
    """Low-level desktop automation primitives.

    Coordinates are logical screen pixels. Key combos are strings such as
    "return", "cmd+shift+k".
    """

    async def click(self, x: int, y: int) -> None: ...

    async def right_click(self, x: int, y: int) -> None: ...

    async def double_click(self, x: int, y: int) -> None: ...

    async def move_mouse(self, x: int, y: int) -> None: ...

    async def drag(self, x1: int, y1: int, x2: int, y2: int) -> None: ...

    async def scroll(self, direction: str, amount: int) -> None: ...

    async def type_text(self, text: str) -> None: ...

    async def press_key(self, combo: str) -> None: ...

    async def focus_application(self, name: str) -> None: ...

    async def run_host_script(self, code: str) -> str: ...

    async def capture_screenshot(self, width: int | None = None) -> str:
        """Capture the screen as base64 PNG, resized to width if given."""
        ...

    async def read_current_selection(self, app: str | None = None) -> str | None: ...

    async def paste_text(self, text: str) -> None: ...

    async def paste_image(self, data: bytes) -> None: ...

    async def frontmost_application(self) -> str | None: ...

    async def window_count(self, app: str) -> int: ...

    async def screen_geometry(self) -> ScreenGeometry: ...


class TimedBackend:
    """Wraps a backend so every call has a hard timeout.

    On timeout the pending call is cancelled and AutomationTimeout is raised.
    Any other failure is re-raised as AutomationError.
    """

    def __init__(
        self,
        backend: HostAutomationBackend,
        *,
        timeout: float = 10.0,
        script_timeout: float = 30.0,
    ) -> None:
        self._backend = backend
        self._timeout = timeout
        self._script_timeout = script_timeout

    @property
    def inner(self) -> HostAutomationBackend:
        return self._backend

    async def _call(self, operation: str, awaitable: Awaitable[T], timeout: float | None = None) -> T:
        limit = timeout if timeout is not None else self._timeout
        try:
            return await asyncio.wait_for(awaitable, timeout=limit)
        except asyncio.TimeoutError:
            log.warning("%s timed out after %ss", operation, limit)
            raise AutomationTimeout(operation, "timeout", timeout=limit) from None
        except AutomationError:
            raise
        except Exception as e:
            raise AutomationError(operation, str(e) or type(e).__name__) from e

    async def click(self, x: int, y: int) -> None:
        await self._call("click", self._backend.click(x, y))

    async def right_click(self, x: int, y: int) -> None:
        await self._call("right_click", self._backend.right_click(x, y))

    async def double_click(self, x: int, y: int) -> None:
        await self._call("double_click", self._backend.double_click(x, y))

    async def move_mouse(self, x: int, y: int) -> None:
        await self._call("move_mouse", self._backend.move_mouse(x, y))

    async def drag(self, x1: int, y1: int, x2: int, y2: int) -> None:
        await self._call("drag", self._backend.drag(x1, y1, x2, y2))

    async def scroll(self, direction: str, amount: int) -> None:
        await self._call("scroll", self._backend.scroll(direction, amount))

    async def type_text(self, text: str) -> None:
        await self._call("type_text", self._backend.type_text(text))

    async def press_key(self, combo: str) -> None:
        await self._call("press_key", self._backend.press_key(combo))

    async def focus_application(self, name: str) -> None:
        await self._call("focus_application", self._backend.focus_application(name))

    async def run_host_script(self, code: str) -> str:
        return await self._call(
            "run_host_script", self._backend.run_host_script(code), self._script_timeout
        )

    async def capture_screenshot(self, width: int | None = None) -> str:
        return await self._call("capture_screenshot", self._backend.capture_screenshot(width))

    async def read_current_selection(self, app: str | None = None) -> str | None:
        return await self._call(
            "read_current_selection", self._backend.read_current_selection(app)
        )

    async def paste_text(self, text: str) -> None:
        await self._call("paste_text", self._backend.paste_text(text))

    async def paste_image(self, data: bytes) -> None:
        await self._call("paste_image", self._backend.paste_image(data))

    async def frontmost_application(self) -> str | None:
        return await self._call("frontmost_application", self._backend.frontmost_application())

    async def window_count(self, app: str) -> int:
        return await self._call("window_count", self._backend.window_count(app))

    async def screen_geometry(self) -> ScreenGeometry:
        return await self._call("screen_geometry", self._backend.screen_geometry())
