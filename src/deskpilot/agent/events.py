"""Outbound notifications from the agent to whatever UI is attached."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from deskpilot.approval.gate import ApprovalRequest, AuthRequest


class EventSink(Protocol):
    """Fire-and-forget UI callbacks. Implementations must not block."""

    def status(self, text: str) -> None: ...

    def stream_chunk(self, text: str) -> None: ...

    def response(self, text: str) -> None: ...

    def approval_required(self, request: ApprovalRequest) -> None: ...

    def auth_required(self, request: AuthRequest) -> None: ...

    def tool_started(self, name: str, display_name: str, args: dict[str, Any]) -> None: ...

    def tool_finished(self, name: str, success: bool, text: str) -> None: ...


class NullEventSink:
    def status(self, text: str) -> None:
        pass

    def stream_chunk(self, text: str) -> None:
        pass

    def response(self, text: str) -> None:
        pass

    def approval_required(self, request: ApprovalRequest) -> None:
        pass

    def auth_required(self, request: AuthRequest) -> None:
        pass

    def tool_started(self, name: str, display_name: str, args: dict[str, Any]) -> None:
        pass

    def tool_finished(self, name: str, success: bool, text: str) -> None:
        pass


@dataclass
class RecordedEvent:
    kind: str
    payload: Any


@dataclass
class RecordingEventSink:
    """Keeps every event in order; used by tests and the debug CLI."""

    events: list[RecordedEvent] = field(default_factory=list)

    def _add(self, kind: str, payload: Any) -> None:
        self.events.append(RecordedEvent(kind, payload))

    def of_kind(self, kind: str) -> list[Any]:
        return [e.payload for e in self.events if e.kind == kind]

    def status(self, text: str) -> None:
        self._add("status", text)

    def stream_chunk(self, text: str) -> None:
        self._add("stream_chunk", text)

    def response(self, text: str) -> None:
        self._add("response", text)

    def approval_required(self, request: ApprovalRequest) -> None:
        self._add("approval_required", request)

    def auth_required(self, request: AuthRequest) -> None:
        self._add("auth_required", request)

    def tool_started(self, name: str, display_name: str, args: dict[str, Any]) -> None:
        self._add("tool_started", {"name": name, "display_name": display_name, "args": args})

    def tool_finished(self, name: str, success: bool, text: str) -> None:
        self._add("tool_finished", {"name": name, "success": success, "text": text})


def approval_payload(request: ApprovalRequest) -> dict[str, Any]:
    """Wire shape of an approval prompt for UI bridges."""
    return {
        "toolName": request.tool_name,
        "toolDescription": request.description,
        "args": request.args,
        "isComposio": request.is_external_integration,
        "displayName": request.display_name or request.tool_name,
        "details": request.details,
    }


def auth_payload(request: AuthRequest) -> dict[str, Any]:
    return {"toolkit": request.toolkit, "redirectUrl": request.redirect_url}
