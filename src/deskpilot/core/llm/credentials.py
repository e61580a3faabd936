"""Credential lookup for the model catalogue.

Keys come from fetch_secret() (environment first, then .env.secrets).
"""

from __future__ import annotations

from dataclasses import dataclass

from deskpilot.config.secrets import fetch_secret
from deskpilot.core.llm.providers import find_provider, get_provider_configs
from deskpilot.errors import ConfigurationError


@dataclass
class ModelInfo:
    """A catalogue model and whether its provider has a key configured."""

    model_id: str
    name: str
    provider: str
    context_length: int
    available: bool


def get_api_key(model_id: str) -> str | None:
    provider = find_provider(model_id)
    if provider is None:
        return None
    return fetch_secret(provider.env_var)


def require_credentials(model_id: str) -> str:
    """Return the API key for a model or raise ConfigurationError.

    Raises:
        ConfigurationError: Unknown provider, or no key configured.
    """
    provider = find_provider(model_id)
    if provider is None:
        raise ConfigurationError(f"No provider found for model: {model_id}")
    key = fetch_secret(provider.env_var)
    if not key or not key.strip():
        raise ConfigurationError(
            f"{provider.name} API key not configured. Set {provider.env_var}.",
            env_var=provider.env_var,
        )
    return key


def list_models() -> list[ModelInfo]:
    """All catalogue models, ordered by provider then context length."""
    models: list[ModelInfo] = []
    for name, config in get_provider_configs().items():
        available = bool(fetch_secret(config.env_var))
        for model in sorted(config.models, key=lambda m: -m.context_length):
            models.append(
                ModelInfo(
                    model_id=model.id,
                    name=model.name,
                    provider=name,
                    context_length=model.context_length,
                    available=available,
                )
            )
    return models
