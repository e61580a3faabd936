"""Conversation context management."""

from deskpilot.context.manager import CONTEXT_FRACTION, ContextManager, get_context_limit

__all__ = ["ContextManager", "get_context_limit", "CONTEXT_FRACTION"]
