"""Configuration loader for generation stages and the generation client."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .types import StageKind

DEFAULT_STAGES: dict[str, dict[str, int]] = {
    StageKind.QUESTIONS.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.RESULTS.value: {"token_budget": 6000, "max_attempts": 3},
    StageKind.UNIFIED_QUIZ.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.BUSINESS_ANALYSIS.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.OUTLINE.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.CONTENT.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.LANDING_PAGE.value: {"token_budget": 4000, "max_attempts": 3},
    StageKind.EMAIL_SEQUENCE.value: {"token_budget": 4000, "max_attempts": 3},
}

DEFAULT_CLIENT: dict[str, Any] = {
    "retry_delay_seconds": 1.0,
    "timeout_seconds": 30.0,
    "max_token_budget": 8000,
    "max_concurrency": 4,
}


class StageSettings(BaseModel):
    token_budget: int = Field(gt=0)
    max_attempts: int = Field(ge=1)


class ClientSettings(BaseModel):
    retry_delay_seconds: float = Field(ge=0)
    timeout_seconds: float = Field(gt=0, le=120)
    max_token_budget: int = Field(gt=0)
    max_concurrency: int = Field(ge=1)


class ConfigError(ValueError):
    pass


def default_config_path() -> Path:
    env_path = os.environ.get("LLM_LEAD_QUIZ_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    project_root = Path(__file__).parent.parent.parent
    return project_root / "config" / "generation.yaml"


class StageConfigLoader:
    """Loads per-stage budgets and client settings from config/generation.yaml."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or default_config_path()
        self._config: dict[str, Any] | None = None

    def _load_config(self) -> None:
        if self._config is not None:
            return
        if not self.config_path.exists():
            self._config = {}
            return
        with self.config_path.open("r", encoding="utf-8") as handle:
            self._config = yaml.safe_load(handle) or {}

    def _section(self, name: str) -> dict[str, Any]:
        self._load_config()
        section = (self._config or {}).get(name, {})
        return section if isinstance(section, dict) else {}

    def get_stage(self, stage: StageKind | str) -> StageSettings:
        """Return merged stage settings with defaults applied."""
        name = StageKind(stage).value
        merged = dict(DEFAULT_STAGES[name])
        user_stage = self._section("stages").get(name, {})
        if isinstance(user_stage, dict):
            merged.update({k: v for k, v in user_stage.items() if v is not None})
        try:
            return StageSettings.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"invalid settings for stage '{name}' in {self.config_path}: {exc}") from exc

    def get_client(self) -> ClientSettings:
        merged = dict(DEFAULT_CLIENT)
        merged.update({k: v for k, v in self._section("client").items() if v is not None})
        try:
            return ClientSettings.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"invalid client settings in {self.config_path}: {exc}") from exc

    def get_provider(self) -> dict[str, Any]:
        return dict(self._section("provider"))

    def all_stages(self) -> dict[str, StageSettings]:
        return {stage.value: self.get_stage(stage) for stage in StageKind}
