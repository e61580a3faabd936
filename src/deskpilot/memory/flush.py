"""Memory flush: extract durable facts before the context window fills up."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from deskpilot.core.llm.provider import Message, Role
from deskpilot.logging import get_logger

if TYPE_CHECKING:
    from deskpilot.core.llm.provider import LLMProvider
    from deskpilot.memory.store import MemoryStore

log = get_logger("memory.flush")

NO_FLUSH = "[NO_FLUSH]"

MEMORY_FLUSH_SYSTEM_PROMPT = """You are a memory extraction agent. Identify durable facts from the conversation that should be preserved before context is lost.

Extract ONLY information worth remembering long-term:
- User preferences, habits, and workflow patterns
- Facts about their setup, tools, accounts
- Decisions made and their reasoning
- Successful approaches to problems
- Names, roles, and relationships mentioned

Output one bullet point per memory, or [NO_FLUSH] if nothing is worth saving:
- User prefers dark mode in all apps
- Project uses React + Vite + Electron"""

MEMORY_FLUSH_PROMPT = (
    "Session is nearing context limits. Review the conversation above and extract "
    "any durable facts or preferences worth preserving. Write them as bullet points. "
    "If there is nothing new worth saving, reply with exactly [NO_FLUSH]."
)


@dataclass
class FlushPolicy:
    """When to flush: usage at or over threshold, with hysteresis.

    After a flush at T tokens, no new flush until current >= T * hysteresis.
    """

    threshold: float = 0.6
    hysteresis: float = 1.3
    last_flush_tokens: int = 0

    def should_flush(self, current_tokens: int, max_tokens: int) -> bool:
        if max_tokens <= 0:
            return False
        if self.last_flush_tokens > 0 and current_tokens < self.last_flush_tokens * self.hysteresis:
            return False
        return current_tokens / max_tokens >= self.threshold

    def record_flush(self, tokens: int) -> None:
        self.last_flush_tokens = tokens

    def reset(self) -> None:
        self.last_flush_tokens = 0


def parse_flush_response(text: str) -> str:
    """Memory text to persist, or "" when the model declined."""
    stripped = text.strip()
    if not stripped or stripped == NO_FLUSH:
        return ""
    return stripped


class MemoryFlusher:
    """One-shot LLM call that appends extracted facts to the daily log."""

    def __init__(
        self,
        provider: LLMProvider,
        store: MemoryStore,
        *,
        max_tokens: int = 1024,
    ) -> None:
        self._provider = provider
        self._store = store
        self._max_tokens = max_tokens

    async def flush(self, conversation: str, now: datetime | None = None) -> bool:
        """Run a flush. Returns True if anything was written.

        Failures are logged and reported as False; a flush never breaks a run.
        """
        messages = [
            Message(Role.SYSTEM, MEMORY_FLUSH_SYSTEM_PROMPT),
            Message(Role.USER, f"{conversation}\n\n{MEMORY_FLUSH_PROMPT}"),
        ]
        try:
            result = await self._provider.complete(messages, max_tokens=self._max_tokens)
        except Exception as e:
            log.error("Memory flush failed: %s", e)
            return False

        content = parse_flush_response(result.content)
        if not content:
            log.debug("Nothing to flush")
            return False

        try:
            self._store.append_daily(content, now)
        except OSError as e:
            log.error("Could not write memory flush: %s", e)
            return False
        log.info("Flushed memories to daily log")
        return True
