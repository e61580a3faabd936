"""Token-budgeted conversation window with FIFO eviction.

The first tracked message is the system prompt and is never evicted. When a
new message would push the estimate over budget, the oldest non-system
messages are dropped and the estimate decremented by exactly their cost.
"""

from __future__ import annotations

from dataclasses import dataclass

from deskpilot.core.llm.provider import Message, Role
from deskpilot.core.llm.providers import get_context_length
from deskpilot.core.tokens import HeuristicTokenEstimator, TokenEstimator
from deskpilot.logging import get_logger

log = get_logger("context")

# Fraction of the model's full context the conversation may use
CONTEXT_FRACTION = 0.5


def get_context_limit(model: str) -> int:
    """Budget for a model: half of its full context length."""
    return int(get_context_length(model) * CONTEXT_FRACTION)


@dataclass(slots=True)
class _Tracked:
    message: Message
    tokens: int


class ContextManager:
    """Ordered message list plus a running token estimate."""

    def __init__(
        self,
        max_tokens: int,
        *,
        estimator: TokenEstimator | None = None,
    ) -> None:
        self._max_tokens = max_tokens
        self._estimator = estimator or HeuristicTokenEstimator()
        self._entries: list[_Tracked] = []
        self._current_tokens = 0
        self._evicted = 0

    @classmethod
    def for_model(cls, model: str, *, estimator: TokenEstimator | None = None) -> ContextManager:
        return cls(get_context_limit(model), estimator=estimator)

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @property
    def current_tokens(self) -> int:
        return self._current_tokens

    @property
    def evicted_count(self) -> int:
        """Messages evicted since the last reset."""
        return self._evicted

    @property
    def messages(self) -> list[Message]:
        return [entry.message for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def usage_percent(self) -> float:
        if self._max_tokens <= 0:
            return 100.0
        return self._current_tokens / self._max_tokens * 100

    def estimate(self, message: Message) -> int:
        return self._estimator.estimate(message)

    def track(self, message: Message) -> None:
        """Append a message, evicting the oldest non-system turns if needed."""
        tokens = self._estimator.estimate(message)

        while self._current_tokens + tokens > self._max_tokens and len(self._entries) > 1:
            self._evict_oldest()
            # Tool results whose assistant turn is gone cannot be sent alone
            while len(self._entries) > 1 and self._entries[1].message.role == Role.TOOL:
                self._evict_oldest()

        self._entries.append(_Tracked(message, tokens))
        self._current_tokens += tokens

    def _evict_oldest(self) -> None:
        evicted = self._entries.pop(1)
        self._current_tokens -= evicted.tokens
        self._evicted += 1
        log.debug(
            "Evicted %s message (%d tokens), now %d/%d",
            evicted.message.role.value,
            evicted.tokens,
            self._current_tokens,
            self._max_tokens,
        )

    def reset(self, system_message: Message | None = None) -> None:
        """Start a new window, optionally seeded with a system prompt."""
        self._entries.clear()
        self._current_tokens = 0
        self._evicted = 0
        if system_message is not None:
            self.track(system_message)
