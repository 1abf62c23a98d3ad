"""
Case Disparity Audit - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides for secrets
- Type validation via Pydantic

Usage:
    from disparity_audit.shared.config import get_config

    config = get_config()  # Uses DA_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    thresholds = config.fairness.thresholds
    max_size = config.ingestion.max_file_size_mb
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "case-disparity-audit"
    version: str = "0.1.0"
    description: str = "Disparity auditing for criminal-justice case outcomes"


class IngestionConfig(BaseModel):
    """File acceptance rules applied before parsing."""

    max_file_size_mb: float = 10.0
    allowed_extensions: list[str] = Field(default_factory=lambda: [".csv"])
    encoding: str = "utf-8"


class NormalizationConfig(BaseModel):
    """Record normalization rules."""

    # Order matters: the first label found as a substring wins
    known_races: list[str] = Field(
        default_factory=lambda: [
            "Hispanic",
            "Black",
            "White",
            "Asian",
            "American Indian",
            "Biracial",
        ]
    )
    na_tokens: list[str] = Field(default_factory=lambda: ["", "n/a"])
    unknown_label: str = "Unknown"
    min_age_exclusive: int = 0
    max_age_exclusive: int = 120
    fallback_median_age: int = 30
    fallback_median_duration_days: int = 365


class FiltersConfig(BaseModel):
    """Filter engine defaults."""

    default_window_years: int = 20


class DisparityThresholds(BaseModel):
    """Alert thresholds for the disparity metrics engine."""

    representation_under: float = 10.0
    representation_over: float = 60.0
    disposition_spread: float = 15.0
    sentencing_ratio: float = 1.5
    duration_spread: float = 60.0
    critical_multiplier: float = 2.0

    @model_validator(mode="after")
    def validate_band(self) -> DisparityThresholds:
        """Representation band must not be inverted."""
        if self.representation_under > self.representation_over:
            raise ValueError(
                f"representation_under ({self.representation_under}) exceeds "
                f"representation_over ({self.representation_over})"
            )
        return self


class ScoringConfig(BaseModel):
    """Penalties used to turn deviation measures into 0-100 sub-scores."""

    representation_penalty: float = 2.0
    disposition_penalty: float = 2.0
    sentencing_penalty: float = 50.0
    duration_days_per_point: float = 30.0


class FairnessConfig(BaseModel):
    """Fairness configuration."""

    default_dimension: str = "race"
    outcome_keywords: list[str] = Field(default_factory=lambda: ["guilty", "nolle"])
    min_slice_size: int = 1
    disposition_breakdown_limit: int = 5
    thresholds: DisparityThresholds = Field(default_factory=DisparityThresholds)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)


class AlertRoutingConfig(BaseModel):
    """Alert routing configuration."""

    info: list[str] = Field(default_factory=lambda: ["log"])
    warning: list[str] = Field(default_factory=lambda: ["log"])
    critical: list[str] = Field(default_factory=lambda: ["log", "slack"])


class AlertingConfig(BaseModel):
    """Alerting configuration."""

    routing: AlertRoutingConfig = Field(default_factory=AlertRoutingConfig)
    slack_timeout_seconds: int = 10


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for Case Disparity Audit.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables (for secrets)

    Environment variables take precedence over YAML values.
    """

    model_config = SettingsConfigDict(
        env_prefix="DA_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    fairness: FairnessConfig = Field(default_factory=FairnessConfig)
    alerting: AlertingConfig = Field(default_factory=AlertingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Secrets (from environment variables only)
    slack_webhook_url: str | None = Field(default=None, alias="SLACK_WEBHOOK_URL")

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path | None:
    """Get the configuration directory path, if one can be found."""
    # Repository checkout: configs/ sits next to the package
    config_dir = Path(__file__).parent.parent.parent / "configs"
    if config_dir.exists():
        return config_dir

    # Try from current working directory
    config_dir = Path.cwd() / "configs"
    if config_dir.exists():
        return config_dir

    return None


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """Load and merge configuration for a specific environment."""
    config_dir = _get_config_dir()
    if config_dir is None:
        logger.debug("No configs directory found, using built-in defaults")
        return {"environment": environment}

    env_dir = config_dir / "environments"

    # Load base config
    base_config = _load_yaml_file(env_dir / "base.yaml")

    # Load environment-specific config
    env_config = _load_yaml_file(env_dir / f"{environment}.yaml")

    # Remove inheritance marker if present
    env_config.pop("_inherit", None)

    merged = _deep_merge(base_config, env_config)
    merged["environment"] = environment

    return merged


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Get configuration for the specified environment.

    Args:
        environment: Environment name (dev, prod).
                    If None, uses DA_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.

    Example:
        config = get_config()  # Uses DA_ENVIRONMENT or defaults to dev
        config = get_config("prod")  # Explicit production config

        # Access values
        ratio = config.fairness.thresholds.sentencing_ratio
    """
    if environment is None:
        environment = os.getenv("DA_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    # Create Settings object (also loads env vars)
    return Settings(**yaml_config)


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)


def get_default_thresholds(config: Settings | None = None) -> DisparityThresholds:
    """Return a copy of the configured thresholds, safe for the caller to modify."""
    config = config or get_config()
    return config.fairness.thresholds.model_copy(deep=True)
