"""Which tool calls must pass the approval gate."""

from __future__ import annotations

import fnmatch
from enum import Enum
from typing import TYPE_CHECKING

from deskpilot.settings import RunSettings, ToolMode

if TYPE_CHECKING:
    from deskpilot.config.schema import ApprovalConfig


class ApprovalRequirement(Enum):
    NONE = "none"  # Run without asking
    CATEGORY = "category"  # Ask once per run for "computer use"
    EVERY_TIME = "every_time"  # Ask on every invocation


COMPUTER_USE = "computer_use"


class ApprovalPolicy:
    """Maps a tool call to an ApprovalRequirement.

    Order of precedence:
    1. always-ask tools (direct text replacement) ask every time
    2. per-tool "auto" setting skips approval
    3. the auto-approve allow-list skips approval
    4. safe integration tools (search / connection management) skip approval
    5. everything else needs the once-per-run computer-use approval
    """

    def __init__(
        self,
        *,
        auto_approve: list[str] | tuple[str, ...] = (),
        always_ask: list[str] | tuple[str, ...] = (),
        safe_integration_patterns: list[str] | tuple[str, ...] = (),
    ) -> None:
        self._auto_approve = frozenset(auto_approve)
        self._always_ask = frozenset(always_ask)
        self._safe_patterns = tuple(safe_integration_patterns)

    @classmethod
    def from_config(cls, config: ApprovalConfig) -> ApprovalPolicy:
        return cls(
            auto_approve=config.auto_approve,
            always_ask=config.always_ask,
            safe_integration_patterns=config.safe_integration_patterns,
        )

    def is_safe_integration(self, tool_name: str) -> bool:
        upper = tool_name.upper()
        return any(fnmatch.fnmatchcase(upper, pattern.upper()) for pattern in self._safe_patterns)

    def requirement(
        self,
        tool_name: str,
        *,
        is_integration: bool = False,
        settings: RunSettings | None = None,
    ) -> ApprovalRequirement:
        if tool_name in self._always_ask:
            return ApprovalRequirement.EVERY_TIME
        if settings is not None and settings.mode_for(tool_name) is ToolMode.AUTO:
            return ApprovalRequirement.NONE
        if tool_name in self._auto_approve:
            return ApprovalRequirement.NONE
        if is_integration and self.is_safe_integration(tool_name):
            return ApprovalRequirement.NONE
        return ApprovalRequirement.CATEGORY
