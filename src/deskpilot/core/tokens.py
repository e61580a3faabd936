"""Token estimation for context budgeting.

Two estimators share the TokenEstimator protocol so the context manager does
not care which one is in use:

- HeuristicTokenEstimator: ceil(chars / 4). An approximation, cheap enough to
  run on every tracked message.
- TiktokenEstimator: exact o200k_base counts, cached by content hash.
"""

from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import tiktoken

if TYPE_CHECKING:
    from deskpilot.core.llm.provider import Message

# Prose averages ~4 chars/token
CHARS_PER_TOKEN = 4.0

# Flat cost charged per image part (a resized screenshot is ~1.5k tokens)
IMAGE_TOKENS = 1500


def count_tokens_heuristic(text: str) -> int:
    """Estimate tokens as ceil(len(text) / CHARS_PER_TOKEN)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


_encoder: tiktoken.Encoding | None = None
_token_cache: dict[int, int] = {}


def _get_encoder() -> tiktoken.Encoding:
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("o200k_base")
    return _encoder


def count_tokens(text: str) -> int:
    """Count tokens with tiktoken, cached by content hash."""
    key = hash(text)
    if key not in _token_cache:
        _token_cache[key] = len(_get_encoder().encode(text))
    return _token_cache[key]


def invalidate_cache() -> None:
    _token_cache.clear()


def message_text(message: Message) -> str:
    """Flatten everything in a message that is sent to the model as text."""
    pieces = [message.text]
    for call in message.tool_calls:
        pieces.append(call.name)
        pieces.append(json.dumps(call.arguments, sort_keys=True))
    return "".join(pieces)


@runtime_checkable
class TokenEstimator(Protocol):
    """Estimates the token cost of a message."""

    def estimate(self, message: Message) -> int: ...


class HeuristicTokenEstimator:
    """Length-based approximation: ceil(chars / 4) plus a flat cost per image."""

    def estimate(self, message: Message) -> int:
        return count_tokens_heuristic(message_text(message)) + IMAGE_TOKENS * len(message.images)


class TiktokenEstimator:
    """Exact tokenizer counts for text, flat cost per image."""

    def estimate(self, message: Message) -> int:
        return count_tokens(message_text(message)) + IMAGE_TOKENS * len(message.images)
