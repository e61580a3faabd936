"""Human-in-the-loop suspension points.

Both gates hold at most one pending request in a single slot backed by an
asyncio.Future. A second request while one is pending raises
ApprovalBusyError; the earlier request is left untouched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from deskpilot.errors import ApprovalBusyError
from deskpilot.logging import get_logger

log = get_logger("approval")

R = TypeVar("R")
T = TypeVar("T")


@dataclass(frozen=True)
class ApprovalRequest:
    """A tool call waiting for a yes/no decision."""

    tool_name: str
    description: str
    args: dict[str, Any] = field(default_factory=dict)
    is_external_integration: bool = False
    display_name: str = ""
    category: str = "computer_use"
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthRequest:
    """An integration call blocked on external authentication."""

    tool_name: str
    toolkit: str
    redirect_url: str | None = None
    message: str = ""


class _SingleSlot(Generic[R, T]):
    """One pending request and the future its waiter is blocked on."""

    def __init__(self, cancelled_value: T) -> None:
        self._cancelled_value = cancelled_value
        self._future: asyncio.Future[T] | None = None
        self._request: R | None = None

    @property
    def pending(self) -> R | None:
        """The request currently awaiting a decision, if any."""
        if self._future is not None and not self._future.done():
            return self._request
        return None

    def _name(self, request: R) -> str:
        return getattr(request, "tool_name", type(request).__name__)

    async def _wait(self, request: R) -> T:
        current = self.pending
        if current is not None:
            raise ApprovalBusyError(self._name(current), self._name(request))

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._future = future
        self._request = request
        try:
            return await future
        finally:
            if self._future is future:
                self._future = None
                self._request = None

    def _resolve(self, value: T) -> bool:
        """Deliver a value to the waiter. Returns False if nothing is pending."""
        future = self._future
        if future is None or future.done():
            return False
        future.set_result(value)
        return True

    def cancel(self) -> None:
        """Resolve a pending request with the cancelled value; no-op otherwise."""
        if self._resolve(self._cancelled_value):
            log.debug("Cancelled pending %s", self._name(self._request))


class ApprovalGate(_SingleSlot[ApprovalRequest, bool]):
    """Suspends a tool call until approve/deny arrives. Cancel means deny."""

    def __init__(self) -> None:
        super().__init__(cancelled_value=False)

    async def request(self, request: ApprovalRequest) -> bool:
        log.debug("Waiting for approval of %s", request.tool_name)
        return await self._wait(request)

    def resolve(self, approved: bool) -> bool:
        return self._resolve(bool(approved))


class AuthGate(_SingleSlot[AuthRequest, bool]):
    """Suspends the loop until the user finishes authenticating a toolkit.

    wait() returns True when completed and False when cancelled.
    """

    def __init__(self) -> None:
        super().__init__(cancelled_value=False)

    async def wait(self, request: AuthRequest) -> bool:
        log.debug("Waiting for %s authentication", request.toolkit)
        return await self._wait(request)

    def complete(self) -> bool:
        return self._resolve(True)
