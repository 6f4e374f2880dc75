"""Tests for configuration loading."""

import pytest

from medinventory.utils.config import AppConfig
from medinventory.utils.exceptions import ConfigurationError


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults_without_yaml(self, tmp_path):
        """Test defaults when no YAML file exists."""
        config = AppConfig(config_path=tmp_path / "missing.yml")

        assert config.inventory.low_stock_threshold == 10
        assert config.inventory.list_expiry_window_days == 7
        assert config.inventory.summary_expiry_window_days == 30
        assert config.features.barcode_lookup is False

    def test_yaml_overrides_thresholds(self, tmp_path):
        """Test that YAML values override the defaults."""
        path = tmp_path / "config.yml"
        path.write_text("inventory:\n  low_stock_threshold: 25\nfeatures:\n  barcode_lookup: true\n")

        config = AppConfig(config_path=path)

        assert config.inventory.low_stock_threshold == 25
        assert config.features.barcode_lookup is True

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Test that environment variables override settings."""
        monkeypatch.setenv("MEDINVENTORY_API_TOKEN", "secret")
        monkeypatch.setenv("MEDINVENTORY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("MEDINVENTORY_ENVIRONMENT", "production")

        config = AppConfig(config_path=tmp_path / "missing.yml")

        assert config.env.api_token == "secret"
        assert config.logging.level == "DEBUG"
        assert config.is_production

    def test_invalid_yaml_values_raise(self, tmp_path):
        """Test that invalid YAML values raise ConfigurationError."""
        path = tmp_path / "config.yml"
        path.write_text("inventory:\n  low_stock_threshold: lots\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration file"):
            AppConfig(config_path=path)
