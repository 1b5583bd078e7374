# src/fearmatch/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/fearmatch/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `FEARMATCH_LOG_LEVEL`, `FEARMATCH_CATALOG_PATH`)
- an external YAML file via `FEARMATCH_CONFIG_PATH`

Design rule:
- Tuning knobs (weights, partial-credit values, default preferences) live in YAML,
  not hard-coded in the scorers.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from fearmatch.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `fearmatch.config`."""
    text = resources.files("fearmatch.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "FearMatch"
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    # None means "use the catalog packaged with fearmatch".
    path: str | None = None


class ScoringWeights(BaseModel):
    fear: float = Field(4.0, ge=0)
    difficulty: float = Field(2.0, ge=0)
    location: float = Field(1.5, ge=0)
    time: float = Field(1.0, ge=0)


class ScoringSettings(BaseModel):
    neutral_score: float = Field(0.5, ge=0, le=1)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    adjacent_difficulty_credit: float = Field(0.5, ge=0, le=1)
    adjacent_difficulty_distance: int = Field(1, ge=0)
    time_mismatch_credit: float = Field(0.5, ge=0, le=1)


class FearProfileSettings(BaseModel):
    min_intensity: float = Field(1.0, ge=0)
    max_intensity: float = Field(4.0, gt=0)
    synthetic_intensity: float = Field(2.5, ge=0)


class PreferenceDefaults(BaseModel):
    preferred_difficulty: Literal["beginner", "easy", "moderate", "challenging", "difficult"] = "beginner"
    max_cost: Literal["free", "low", "medium", "high", "premium"] = "medium"
    max_time_commitment: Literal["under_1_hour", "1-3_hours", "half_day", "full_day", "multi_day"] = "half_day"
    environment: Literal["indoor", "outdoor", "both"] = "both"


class PreferenceSettings(BaseModel):
    defaults: PreferenceDefaults = Field(default_factory=PreferenceDefaults)
    experience_to_difficulty: dict[str, str] = Field(
        default_factory=lambda: {
            "novice": "beginner",
            "intermediate": "moderate",
            "experienced": "challenging",
            "expert": "difficult",
        }
    )


class OrchestratorSettings(BaseModel):
    load_timeout_seconds: float = Field(10.0, gt=0)
    default_sort_order: Literal["alphabetical", "difficulty_asc", "difficulty_desc", "recommended"] = (
        "recommended"
    )


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    fear_profile: FearProfileSettings = Field(default_factory=FearProfileSettings)
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    data = dict(data)
    log_level = os.getenv("FEARMATCH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("FEARMATCH_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("FEARMATCH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
