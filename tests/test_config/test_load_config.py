"""Tests for config loading, layering and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from shopping_assistant.config import (
    AppConfig,
    LoggingConfig,
    RecommendationConfig,
    ScoringConfig,
    load_config,
)

_ENV_VARS = (
    "SHOPPING_ASSISTANT_LOG_LEVEL",
    "SHOPPING_ASSISTANT_DEFAULT_TTL_HOURS",
    "SHOPPING_ASSISTANT_MIN_SCORE",
    "SHOPPING_ASSISTANT_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    def test_model_defaults(self):
        config = AppConfig()
        assert config.scoring.min_score == 0.1
        assert config.scoring.reason_floor == 0.2
        assert config.scoring.hybrid_weights == {
            "collaborative": 0.4, "content-based": 0.4, "popularity": 0.2,
        }
        assert config.recommendations.default_ttl_hours == 24
        assert config.logging.level == "INFO"
        assert config.debug is False

    def test_committed_default_toml_loads(self):
        config = load_config()
        assert config.scoring.popularity_saturation == 10
        assert config.recommendations.high_quality_threshold == 0.7
        assert config.output.output_dir == "data/outputs"

    def test_frozen(self):
        with pytest.raises(ValidationError):
            AppConfig().debug = True


class TestLoadConfig:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_partial_toml_keeps_defaults(self, tmp_path):
        path = _write(tmp_path / "app.toml", "[scoring]\nmin_score = 0.25\n")
        config = load_config(path)
        assert config.scoring.min_score == 0.25
        assert config.scoring.default_limit == 10

    def test_local_toml_overrides(self, tmp_path):
        path = _write(
            tmp_path / "app.toml",
            "[scoring]\nmin_score = 0.25\ndefault_limit = 5\n",
        )
        _write(tmp_path / "local.toml", "[scoring]\nmin_score = 0.4\n")
        config = load_config(path)
        assert config.scoring.min_score == 0.4
        assert config.scoring.default_limit == 5

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "app.toml", "[logging]\nlevel = \"INFO\"\n")
        monkeypatch.setenv("SHOPPING_ASSISTANT_LOG_LEVEL", "debug")
        monkeypatch.setenv("SHOPPING_ASSISTANT_DEFAULT_TTL_HOURS", "6")
        monkeypatch.setenv("SHOPPING_ASSISTANT_MIN_SCORE", "0.3")
        monkeypatch.setenv("SHOPPING_ASSISTANT_DEBUG", "yes")
        config = load_config(path)
        assert config.logging.level == "DEBUG"
        assert config.recommendations.default_ttl_hours == 6
        assert config.scoring.min_score == 0.3
        assert config.debug is True

    def test_project_debug_flag(self, tmp_path):
        path = _write(tmp_path / "app.toml", "[project]\ndebug = true\n")
        assert load_config(path).debug is True

    def test_invalid_value_raises(self, tmp_path):
        path = _write(tmp_path / "app.toml", "[scoring]\nmin_score = 1.5\n")
        with pytest.raises(ValidationError):
            load_config(path)


class TestValidation:
    def test_hybrid_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            ScoringConfig(hybrid_weights={"collaborative": 0.5, "content-based": 0.4})

    def test_hybrid_weights_unknown_key(self):
        with pytest.raises(ValidationError, match="hybrid_weights keys"):
            ScoringConfig(hybrid_weights={"hybrid": 1.0})

    def test_interaction_weight_keys(self):
        assert ScoringConfig(interaction_weights={"favorite": 0.9}).interaction_weights == {
            "favorite": 0.9
        }
        with pytest.raises(ValidationError, match="interaction_weights keys"):
            ScoringConfig(interaction_weights={"share": 0.5})

    def test_positive_ints(self):
        with pytest.raises(ValidationError):
            ScoringConfig(popularity_saturation=0)

    def test_ttl_positive(self):
        with pytest.raises(ValidationError, match="default_ttl_hours"):
            RecommendationConfig(default_ttl_hours=0)

    def test_quality_thresholds_ordered(self):
        with pytest.raises(ValidationError, match="Quality thresholds"):
            RecommendationConfig(high_quality_threshold=0.2, low_quality_threshold=0.5)

    def test_log_level(self):
        assert LoggingConfig(level="warning").level == "WARNING"
        with pytest.raises(ValidationError, match="Log level"):
            LoggingConfig(level="LOUD")
