"""Provider configuration: which generative service adapter to build."""

from __future__ import annotations

import os
from typing import Any, Optional

from ..adapters.mock_adapter import MockAdapter
from ..adapters.openai_adapter import OpenAIAdapter
from ..adapters.openrouter_adapter import OpenRouterAdapter
from .stage_config import StageConfigLoader

DEFAULT_PROVIDER: dict[str, Any] = {
    "name": "openai",
    "model": "gpt-4o",
    "api_key_env": "OPENAI_API_KEY",
    "default_params": {"temperature": 0.7},
}

PROVIDER_KEY_ENVS = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


def use_mocks() -> bool:
    return os.environ.get("LLM_LEAD_QUIZ_ENV", "real").lower() == "mock"


class ModelConfig:
    """Configuration for the single provider the pipeline talks to."""

    def __init__(self, config_dict: dict):
        self.provider = config_dict.get("name", DEFAULT_PROVIDER["name"])
        self.model = config_dict.get("model", DEFAULT_PROVIDER["model"])
        self.api_key_env = config_dict.get("api_key_env") or PROVIDER_KEY_ENVS.get(
            self.provider, DEFAULT_PROVIDER["api_key_env"]
        )
        self.default_params = dict(config_dict.get("default_params") or {})

    @property
    def id(self) -> str:
        return f"{self.provider}:{self.model}"

    def is_available(self, use_mocks: bool = False) -> bool:
        """Check if this provider is usable (has an API key or is in mock mode)."""
        if use_mocks:
            return True
        return bool(os.environ.get(self.api_key_env))

    def create_adapter(self, use_mocks: bool = False):
        """Create the appropriate adapter for this provider."""
        if use_mocks:
            return MockAdapter(model=self.id)
        if self.provider == "openai":
            return OpenAIAdapter(model=self.model, api_key_env=self.api_key_env)
        if self.provider == "openrouter":
            return OpenRouterAdapter(model=self.model, api_key_env=self.api_key_env)
        raise ValueError(f"Unknown provider: {self.provider}")


def load_model_config(loader: Optional[StageConfigLoader] = None) -> ModelConfig:
    """Provider settings from the config file, overridden by environment variables."""
    merged = dict(DEFAULT_PROVIDER)
    if loader is not None:
        merged.update({k: v for k, v in loader.get_provider().items() if v})
    provider = os.environ.get("LLM_LEAD_QUIZ_PROVIDER", "").strip()
    if provider and provider != merged["name"]:
        merged["name"] = provider
        merged["api_key_env"] = PROVIDER_KEY_ENVS.get(provider, merged["api_key_env"])
    model = os.environ.get("LLM_LEAD_QUIZ_MODEL", "").strip()
    if model:
        merged["model"] = model
    return ModelConfig(merged)
