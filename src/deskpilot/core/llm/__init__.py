"""LLM provider abstraction."""

from deskpilot.core.llm.credentials import (
    ModelInfo,
    get_api_key,
    list_models,
    require_credentials,
)
from deskpilot.core.llm.litellm_provider import LiteLLMProvider, create_provider
from deskpilot.core.llm.provider import (
    CompletionResult,
    ImagePart,
    LLMProvider,
    Message,
    Role,
    StreamChunk,
    TextPart,
    ToolCall,
    ToolSchema,
)
from deskpilot.core.llm.providers import (
    ModelConfig,
    ProviderConfig,
    find_provider,
    get_context_length,
    get_model_config,
    get_provider_configs,
)

__all__ = [
    # Protocol and types
    "LLMProvider",
    "CompletionResult",
    "ImagePart",
    "Message",
    "Role",
    "StreamChunk",
    "TextPart",
    "ToolCall",
    "ToolSchema",
    # Implementation
    "LiteLLMProvider",
    "create_provider",
    # Catalogue
    "ModelConfig",
    "ProviderConfig",
    "find_provider",
    "get_context_length",
    "get_model_config",
    "get_provider_configs",
    # Credentials
    "ModelInfo",
    "get_api_key",
    "list_models",
    "require_credentials",
]
