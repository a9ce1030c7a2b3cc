"""
Settings for the analytics engine.

Defaults reproduce the business constants of the dashboard (NGR factor,
REV tier table, fraud thresholds). They can be overridden from a YAML file
and from environment variables prefixed with ``IG_ANALYTICS_``; nested keys
use ``__`` as separator, e.g. ``IG_ANALYTICS_SCORING__SUSPICIOUS_LIMIT=50``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .data_models import NGR_FACTOR
from .rev import DEFAULT_TIER, REV_PERCENT

ENV_PREFIX = "IG_ANALYTICS_"


class ConfigError(Exception):
    """Raised when settings cannot be loaded or fail validation."""


class ScoringSettings(BaseModel):
    """Thresholds and weights of the affiliate fraud score."""

    rejected_rate_threshold: float = Field(0.20, ge=0, le=1)
    rejected_rate_points: int = Field(30, ge=0)
    roi_threshold: float = -0.50
    roi_points: int = Field(25, ge=0)
    ltv_per_customer_threshold: float = 50.0
    ltv_per_customer_points: int = Field(25, ge=0)
    inactivity_threshold: float = Field(0.80, ge=0, le=1)
    inactivity_points: int = Field(20, ge=0)
    max_score: int = Field(100, gt=0)
    suspicious_min_score: int = Field(51, ge=0)
    suspicious_limit: int = Field(20, gt=0)


class AnalyticsSettings(BaseModel):
    ngr_factor: float = Field(NGR_FACTOR, gt=0, le=1)
    rev_percent: Dict[str, float] = Field(default_factory=lambda: dict(REV_PERCENT))
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)

    @field_validator("rev_percent", mode="before")
    def tier_names_are_canonical(cls, v):
        # environment keys arrive lower-cased; match them back to known tiers
        if not isinstance(v, dict):
            return v
        known = {name.lower(): name for name in REV_PERCENT}
        return {known.get(str(tier).lower(), tier): pct for tier, pct in v.items()}

    @field_validator("rev_percent")
    def rev_percent_must_be_valid(cls, v):
        if DEFAULT_TIER not in v:
            raise ValueError(f"rev_percent must define the fallback tier '{DEFAULT_TIER}'")
        for tier, pct in v.items():
            if not 0 <= pct <= 1:
                raise ValueError(f"rev_percent for '{tier}' must be within [0, 1], got {pct}")
        return v


def _load_config_from_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"YAML file {path} must contain a mapping at top level.")
    return data


def _parse_env_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _get_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    # parents before children, so IG_ANALYTICS_X__Y refines IG_ANALYTICS_X
    for key, raw in sorted(environ.items()):
        if not key.startswith(ENV_PREFIX):
            continue
        path = key[len(ENV_PREFIX):].lower().split("__")
        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = _parse_env_value(raw)
    return overrides


def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AnalyticsSettings:
    """
    Load, merge and validate settings.

    Args:
        path: Optional YAML file. When omitted only defaults and environment
            overrides apply.
        environ: Environment mapping, ``os.environ`` by default.

    Raises:
        ConfigError: If the file is missing or malformed, or validation fails.
    """

    base: Dict[str, Any] = {}
    if path is not None:
        logger.info(f"Loading settings from '{path}'...")
        base = _load_config_from_yaml(Path(path))

    # partial tier tables refine the default table
    defaults = {"rev_percent": dict(REV_PERCENT)}
    final_config = _merge_configs(_merge_configs(defaults, base), _get_env_overrides(environ))

    try:
        settings = AnalyticsSettings.model_validate(final_config)
    except ValidationError as e:
        error_msg = f"Configuration validation failed with {len(e.errors())} error(s):\n"
        for error in e.errors():
            loc = " -> ".join(map(str, error["loc"])) if error["loc"] else "root"
            error_msg += f"  - Location: {loc}\n    Message: {error['msg']}\n"
        logger.error(error_msg)
        raise ConfigError("Failed to validate settings.") from e

    logger.debug("Settings loaded and validated.")
    return settings
