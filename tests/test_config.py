"""Tests for configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from devrep.config import (
    DEFAULT_ADVISORY_MODELS,
    AdvisoryConfig,
    DevRepConfig,
    ThresholdConfig,
    load_config,
)
from devrep.exceptions import ConfigError

_ENV_VARS = [
    "GEMINI_API_KEY",
    "DEVREP_ADVISORY_MODELS",
    "DEVREP_ADVISORY_TIMEOUT",
    "DEVREP_MAX_REPOS",
    "DEVREP_ELITE",
    "DEVREP_TRUSTED",
    "DEVREP_ESTABLISHED",
    "DEVREP_CONTRIBUTOR",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestAdvisoryConfig:
    def test_defaults(self) -> None:
        config = AdvisoryConfig()
        assert config.api_key is None
        assert config.enabled is False
        assert config.models == DEFAULT_ADVISORY_MODELS
        assert config.timeout_seconds == 20.0
        assert config.weight == 0.3

    def test_enabled_with_key(self) -> None:
        assert AdvisoryConfig(api_key="abc").enabled is True

    def test_key_hidden_from_repr(self) -> None:
        assert "secret-key" not in repr(AdvisoryConfig(api_key="secret-key"))

    def test_weight_bounds(self) -> None:
        with pytest.raises(ValidationError):
            AdvisoryConfig(weight=1.5)


class TestThresholdConfig:
    def test_defaults(self) -> None:
        config = ThresholdConfig()
        assert (config.contributor, config.established, config.trusted, config.elite) == (
            30, 50, 70, 85,
        )

    @pytest.mark.parametrize(
        "overrides",
        [
            {"elite": 60},
            {"contributor": 50},
            {"elite": 101},
            {"contributor": -1},
        ],
    )
    def test_order_enforced(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            ThresholdConfig(**overrides)


class TestDevRepConfig:
    def test_defaults(self) -> None:
        config = DevRepConfig()
        assert config.fetch.max_repos == 100
        assert config.fetch.active_window_months == 6
        assert config.fetch.event_estimate_multiplier == 4
        assert config.fetch.merged_pr_estimate_ratio == 0.65
        assert config.narrative.max_strengths == 5
        assert config.narrative.max_improvements == 3


class TestLoadConfig:
    def test_load_defaults(self) -> None:
        config = load_config()
        assert isinstance(config, DevRepConfig)
        assert config.thresholds.elite == 85
        assert config.advisory.enabled is False

    def test_load_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text(yaml.dump({
            "advisory": {"timeout_seconds": 5, "models": ["gemini-1.5-pro"]},
            "thresholds": {"elite": 90},
        }))
        config = load_config(config_file)
        assert config.advisory.timeout_seconds == 5
        assert config.advisory.models == ["gemini-1.5-pro"]
        assert config.thresholds.elite == 90
        # Defaults preserved
        assert config.thresholds.trusted == 70

    def test_default_location(self, tmp_path: Path) -> None:
        (tmp_path / ".devrep.yml").write_text(yaml.dump({"fetch": {"max_repos": 30}}))
        config = load_config()
        assert config.fetch.max_repos == 30

    def test_load_nonexistent_path(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.yml")
        assert config.thresholds.elite == 85

    def test_load_directory_path_falls_back_to_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert isinstance(config, DevRepConfig)

    def test_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")
        assert load_config(config_file).thresholds.elite == 85

    def test_env_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        config = load_config()
        assert config.advisory.api_key == "from-env"
        assert config.advisory.enabled is True

    def test_empty_env_value_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "")
        assert load_config().advisory.enabled is False

    def test_env_models_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEVREP_ADVISORY_MODELS", "gemini-1.5-pro, gemini-1.5-flash,")
        config = load_config()
        assert config.advisory.models == ["gemini-1.5-pro", "gemini-1.5-flash"]

    def test_env_numeric_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEVREP_ADVISORY_TIMEOUT", "2.5")
        monkeypatch.setenv("DEVREP_MAX_REPOS", "25")
        monkeypatch.setenv("DEVREP_ELITE", "90")
        config = load_config()
        assert config.advisory.timeout_seconds == 2.5
        assert config.fetch.max_repos == 25
        assert config.thresholds.elite == 90

    def test_yaml_plus_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text(yaml.dump({"thresholds": {"trusted": 75}}))
        monkeypatch.setenv("DEVREP_TRUSTED", "72")
        config = load_config(config_file)
        # Env var takes precedence
        assert config.thresholds.trusted == 72

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEVREP_MAX_REPOS", "lots")
        with pytest.raises(ConfigError, match="DEVREP_MAX_REPOS"):
            load_config()

    def test_inconsistent_thresholds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEVREP_CONTRIBUTOR", "95")
        with pytest.raises(ConfigError):
            load_config()
