"""Configuration models for devrep."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from devrep.exceptions import ConfigError

DEFAULT_ADVISORY_MODELS = [
    "gemini-2.0-flash-exp",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
]


class AdvisoryConfig(BaseModel):
    """Generative-text advisory service settings.

    The advisory step is enabled only when ``api_key`` is set.
    """
    api_key: str | None = Field(default=None, repr=False)
    base_url: str = "https://generativelanguage.googleapis.com"
    models: list[str] = Field(default_factory=lambda: list(DEFAULT_ADVISORY_MODELS))
    timeout_seconds: float = 20.0
    weight: float = Field(default=0.3, ge=0.0, le=1.0)
    temperature: float = 0.4

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class ThresholdConfig(BaseModel):
    """Trust level thresholds (inclusive lower bounds on the final score)."""
    elite: int = 85
    trusted: int = 70
    established: int = 50
    contributor: int = 30

    @model_validator(mode="after")
    def _check_order(self) -> ThresholdConfig:
        if not (0 <= self.contributor < self.established < self.trusted < self.elite <= 100):
            msg = "thresholds must satisfy 0 <= contributor < established < trusted < elite <= 100"
            raise ValueError(msg)
        return self


class FetchConfig(BaseModel):
    """GitHub API fetch parameters."""
    per_page: int = 100
    max_repos: int = 100
    active_window_months: int = 6
    event_estimate_multiplier: int = 4
    merged_pr_estimate_ratio: float = 0.65


class NarrativeConfig(BaseModel):
    """Limits for generated strength/improvement lists."""
    max_strengths: int = 5
    max_improvements: int = 3


class DevRepConfig(BaseModel):
    """Top-level configuration composing all sub-configs."""
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)


def _split_models(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def load_config(path: str | Path | None = None) -> DevRepConfig:
    """Load configuration from YAML file, environment variables, and defaults.

    Priority (highest to lowest):
    1. Environment variables (``GEMINI_API_KEY``, ``DEVREP_*``)
    2. YAML config file
    3. Defaults
    """
    config_data: dict[str, Any] = {}

    # Load from YAML file
    if path is not None:
        config_path = Path(path)
        if config_path.is_file():
            with open(config_path) as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data
    else:
        # Try default locations
        for default_path in [".devrep.yml", ".devrep.yaml"]:
            p = Path(default_path)
            if p.is_file():
                with open(p) as f:
                    yaml_data = yaml.safe_load(f)
                    if yaml_data:
                        config_data = yaml_data
                break

    # Apply environment variable overrides
    env_mapping = {
        "GEMINI_API_KEY": ("advisory", "api_key", str),
        "DEVREP_ADVISORY_MODELS": ("advisory", "models", _split_models),
        "DEVREP_ADVISORY_TIMEOUT": ("advisory", "timeout_seconds", float),
        "DEVREP_MAX_REPOS": ("fetch", "max_repos", int),
        "DEVREP_ELITE": ("thresholds", "elite", int),
        "DEVREP_TRUSTED": ("thresholds", "trusted", int),
        "DEVREP_ESTABLISHED": ("thresholds", "established", int),
        "DEVREP_CONTRIBUTOR": ("thresholds", "contributor", int),
    }

    for env_var, (section, key, type_fn) in env_mapping.items():
        value = os.environ.get(env_var)
        if value:
            if section not in config_data:
                config_data[section] = {}
            try:
                config_data[section][key] = type_fn(value)
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}") from exc

    try:
        return DevRepConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
