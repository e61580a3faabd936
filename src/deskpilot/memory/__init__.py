"""Long-term memory: markdown store and context-pressure flushes."""

from deskpilot.memory.flush import (
    NO_FLUSH,
    FlushPolicy,
    MemoryFlusher,
    parse_flush_response,
)
from deskpilot.memory.store import MemoryHit, MemoryStore, keywords

__all__ = [
    "FlushPolicy",
    "MemoryFlusher",
    "NO_FLUSH",
    "parse_flush_response",
    "MemoryHit",
    "MemoryStore",
    "keywords",
]
