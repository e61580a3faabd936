"""Model catalogue loaded from the models.yaml package resource."""

from __future__ import annotations

import importlib.resources
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import yaml

DEFAULT_CONTEXT_LENGTH = 128000


@dataclass
class ModelConfig:
    """Configuration for a single model."""

    id: str
    name: str
    context_length: int
    capabilities: list[str] = field(default_factory=list)  # tool_use, image_input, computer_use


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider."""

    name: str
    env_var: str
    coordinates: str = "pixel"
    prefixes: list[str] = field(default_factory=list)
    models: list[ModelConfig] = field(default_factory=list)

    def matches(self, model_id: str) -> bool:
        if any(m.id == model_id for m in self.models):
            return True
        return any(model_id.startswith(prefix) for prefix in self.prefixes)


@lru_cache(maxsize=1)
def _load_models_yaml() -> dict[str, Any]:
    """Load models.yaml from package resources."""
    files = importlib.resources.files("deskpilot.core.llm")
    with files.joinpath("models.yaml").open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@lru_cache(maxsize=1)
def get_provider_configs() -> dict[str, ProviderConfig]:
    """Build ProviderConfig objects from the catalogue."""
    data = _load_models_yaml()
    configs: dict[str, ProviderConfig] = {}

    for provider_name, provider_data in data.get("providers", {}).items():
        models = [
            ModelConfig(
                id=m["id"],
                name=m.get("name", m["id"]),
                context_length=m.get("context_length", DEFAULT_CONTEXT_LENGTH),
                capabilities=m.get("capabilities", []),
            )
            for m in provider_data.get("models", [])
        ]
        configs[provider_name] = ProviderConfig(
            name=provider_name,
            env_var=provider_data["env_var"],
            coordinates=provider_data.get("coordinates", "pixel"),
            prefixes=provider_data.get("prefixes", []),
            models=models,
        )

    return configs


def find_provider(model_id: str) -> ProviderConfig | None:
    """Find the provider serving a model (exact id first, then name prefix)."""
    configs = get_provider_configs()
    for config in configs.values():
        if any(m.id == model_id for m in config.models):
            return config
    for config in configs.values():
        if config.matches(model_id):
            return config
    return None


def get_model_config(model_id: str) -> ModelConfig | None:
    for config in get_provider_configs().values():
        for model in config.models:
            if model.id == model_id:
                return model
    return None


def get_context_length(model_id: str) -> int:
    """Full context length of a model, or the catalogue default if unknown."""
    model = get_model_config(model_id)
    if model:
        return model.context_length
    return _load_models_yaml().get("default_context_length", DEFAULT_CONTEXT_LENGTH)
