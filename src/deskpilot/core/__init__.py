"""Core runtime modules: LLM provider abstraction and token estimation."""

from deskpilot.core.llm import (
    ImagePart,
    LiteLLMProvider,
    LLMProvider,
    Message,
    Role,
    StreamChunk,
    TextPart,
    ToolCall,
    ToolSchema,
)
from deskpilot.core.tokens import (
    CHARS_PER_TOKEN,
    IMAGE_TOKENS,
    HeuristicTokenEstimator,
    TiktokenEstimator,
    TokenEstimator,
    count_tokens,
    count_tokens_heuristic,
)

__all__ = [
    # LLM
    "ImagePart",
    "LLMProvider",
    "LiteLLMProvider",
    "Message",
    "Role",
    "StreamChunk",
    "TextPart",
    "ToolCall",
    "ToolSchema",
    # Tokens
    "CHARS_PER_TOKEN",
    "IMAGE_TOKENS",
    "TokenEstimator",
    "HeuristicTokenEstimator",
    "TiktokenEstimator",
    "count_tokens",
    "count_tokens_heuristic",
]
