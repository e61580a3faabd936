"""Collaborators available to tool handlers during one run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from deskpilot.settings import RunSettings

if TYPE_CHECKING:
    from deskpilot.actions.sequencer import ActionSequencer, ImageSearch
    from deskpilot.automation.backend import HostAutomationBackend
    from deskpilot.automation.script_runner import ScriptRunner
    from deskpilot.extraction.extractor import StateExtractor
    from deskpilot.integrations.types import IntegrationRouter
    from deskpilot.memory.store import MemoryStore
    from deskpilot.tools.registry import ToolRegistry


class WebSearch(Protocol):
    async def search(self, query: str) -> str: ...


@dataclass
class ToolContext:
    backend: HostAutomationBackend
    extractor: StateExtractor
    sequencer: ActionSequencer
    registry: ToolRegistry
    script_runner: ScriptRunner | None = None
    memory: MemoryStore | None = None
    router: IntegrationRouter | None = None
    web_search: WebSearch | None = None
    image_search: ImageSearch | None = None
    settings: RunSettings = field(default_factory=RunSettings)
    script_timeout: float | None = None
