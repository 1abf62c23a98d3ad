"""
Tests for Configuration Loader

Tests YAML environment loading, merging and environment overrides.
"""

import pytest

from disparity_audit.shared.config import (
    DisparityThresholds,
    Settings,
    _deep_merge,
    get_config,
    get_default_thresholds,
    reload_config,
)


def test_dev_config_loads(test_config):
    """Test the dev environment loads with base defaults."""
    assert test_config.environment == "dev"
    assert test_config.logging.level == "DEBUG"
    assert test_config.ingestion.allowed_extensions == [".csv"]
    assert test_config.fairness.outcome_keywords == ["guilty", "nolle"]


def test_prod_overrides_logging():
    """Test the prod environment overrides base values."""
    config = reload_config("prod")

    assert config.environment == "prod"
    assert config.logging.level == "WARNING"
    assert config.alerting.routing.critical == ["log", "slack"]


def test_default_thresholds(test_config):
    """Test the documented default thresholds."""
    thresholds = test_config.fairness.thresholds

    assert thresholds.representation_under == 10
    assert thresholds.representation_over == 60
    assert thresholds.disposition_spread == 15
    assert thresholds.sentencing_ratio == 1.5
    assert thresholds.duration_spread == 60


def test_get_default_thresholds_is_a_copy(test_config):
    """Test callers can modify the returned thresholds safely."""
    thresholds = get_default_thresholds(test_config)
    thresholds.sentencing_ratio = 9.0

    assert test_config.fairness.thresholds.sentencing_ratio == 1.5


def test_config_is_cached():
    """Test get_config returns the cached instance."""
    assert get_config("dev") is get_config("dev")


def test_environment_from_env_var(monkeypatch):
    """Test DA_ENVIRONMENT selects the environment."""
    monkeypatch.setenv("DA_ENVIRONMENT", "prod")
    assert reload_config().environment == "prod"
    reload_config("dev")


def test_invalid_environment():
    """Test unknown environments are rejected."""
    with pytest.raises(ValueError):
        Settings(environment="staging")


def test_nested_env_override(monkeypatch):
    """Test nested values can be overridden from the environment."""
    monkeypatch.setenv("DA_FILTERS__DEFAULT_WINDOW_YEARS", "5")
    assert Settings().filters.default_window_years == 5


def test_slack_webhook_from_env(monkeypatch):
    """Test the webhook secret is read from SLACK_WEBHOOK_URL."""
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.test/x")
    assert Settings().slack_webhook_url == "https://hooks.slack.test/x"


def test_deep_merge():
    """Test nested dictionaries merge key by key."""
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    override = {"a": {"c": 5}, "e": 6}

    assert _deep_merge(base, override) == {"a": {"b": 1, "c": 5}, "d": 3, "e": 6}


def test_threshold_model_defaults():
    """Test threshold model defaults match configuration defaults."""
    assert DisparityThresholds() == get_config("dev").fairness.thresholds
