"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local env overrides (gitignored)
  4. Environment variables       : ``SHOPPING_ASSISTANT_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The ranker and every CLI command receive an ``AppConfig`` instance; the
scoring modules themselves only take plain arguments.
"""

from __future__ import annotations

import math
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType, RecommendationAlgorithm

ENV_PREFIX = "SHOPPING_ASSISTANT_"

# Algorithms that contribute a signal to the hybrid blend
BLEND_ALGORITHMS = frozenset(
    {
        RecommendationAlgorithm.COLLABORATIVE.value,
        RecommendationAlgorithm.CONTENT_BASED.value,
        RecommendationAlgorithm.POPULARITY.value,
    }
)

# ── Sub-config models ─────────────────────────────────────────────────────────


class ScoringConfig(BaseModel):
    """Candidate scoring parameters used by the ranker."""

    model_config = ConfigDict(frozen=True)

    min_score: float = 0.1
    reason_floor: float = 0.2
    hybrid_weights: dict[str, float] = {
        "collaborative": 0.4,
        "content-based": 0.4,
        "popularity":    0.2,
    }
    popularity_saturation: int = 10      # interactions at which popularity hits 1.0
    interaction_weights: dict[str, float] = {}
    recency_window_days: int = 30
    default_limit: int = 10

    @field_validator("min_score", "reason_floor")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Score thresholds must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("hybrid_weights")
    @classmethod
    def validate_hybrid_weights(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = set(v) - BLEND_ALGORITHMS
        if unknown:
            raise ValueError(
                f"hybrid_weights keys must be among {sorted(BLEND_ALGORITHMS)}, "
                f"got {sorted(unknown)}."
            )
        if any(w < 0 for w in v.values()):
            raise ValueError("hybrid_weights must be non-negative.")
        if not math.isclose(sum(v.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"hybrid_weights must sum to 1.0, got {sum(v.values())}.")
        return v

    @field_validator("interaction_weights")
    @classmethod
    def validate_interaction_weights(cls, v: dict[str, float]) -> dict[str, float]:
        valid = {t.value for t in InteractionType}
        unknown = set(v) - valid
        if unknown:
            raise ValueError(
                f"interaction_weights keys must be among {sorted(valid)}, "
                f"got {sorted(unknown)}."
            )
        return v

    @field_validator("popularity_saturation", "recency_window_days", "default_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v


class RecommendationConfig(BaseModel):
    """Recommendation lifecycle and quality thresholds."""

    model_config = ConfigDict(frozen=True)

    default_ttl_hours: float = 24
    expiring_soon_hours: float = 24
    fresh_max_age_hours: float = 24
    high_quality_threshold: float = 0.7
    low_quality_threshold: float = 0.3

    @field_validator("default_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"default_ttl_hours must be > 0, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_quality_thresholds(self) -> "RecommendationConfig":
        if not 0.0 <= self.low_quality_threshold <= self.high_quality_threshold <= 1.0:
            raise ValueError(
                "Quality thresholds must satisfy 0 <= low_quality_threshold "
                "<= high_quality_threshold <= 1."
            )
        return self


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: Optional[str] = None
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class OutputConfig(BaseModel):
    """Where CLI reports are written."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs"


class AppConfig(BaseModel):
    """Complete application configuration.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    scoring: ScoringConfig = ScoringConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    logging: LoggingConfig = LoggingConfig()
    output: OutputConfig = OutputConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists() and local_config_path != config_path:
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SHOPPING_ASSISTANT_* env vars to the raw config dict.

    Supported overrides:
      SHOPPING_ASSISTANT_LOG_LEVEL          → raw["logging"]["level"]
      SHOPPING_ASSISTANT_DEFAULT_TTL_HOURS  → raw["recommendations"]["default_ttl_hours"]
      SHOPPING_ASSISTANT_MIN_SCORE          → raw["scoring"]["min_score"]
      SHOPPING_ASSISTANT_DEBUG              → raw["debug"]
    """
    if log_level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if ttl := os.environ.get(f"{ENV_PREFIX}DEFAULT_TTL_HOURS"):
        raw.setdefault("recommendations", {})["default_ttl_hours"] = float(ttl)

    if min_score := os.environ.get(f"{ENV_PREFIX}MIN_SCORE"):
        raw.setdefault("scoring", {})["min_score"] = float(min_score)

    if debug := os.environ.get(f"{ENV_PREFIX}DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        scoring=ScoringConfig(**raw.get("scoring", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        output=OutputConfig(**raw.get("output", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
