"""Tests for settings loading."""

import logging

import pytest
import yaml
from pydantic import ValidationError

from src.hammertime.config import Settings, configure_logging, load_settings

ENV_VARS = [
    "HAMMERTIME_CONFIG",
    "DRY_RUN",
    "AWS_REGION",
    "MAX_WORKERS",
    "HAMMERTIME_RETRIES",
    "SLACK_WEBHOOK_URL",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove settings variables from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config file and return its path."""

    def _write(data):
        path = tmp_path / "hammertime.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


class TestSettings:
    """Test Settings validation."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings()
        assert settings.dry_run is False
        assert settings.retries == 10
        assert settings.default_timezone == 10
        assert settings.slack_webhook_url is None
        assert settings.log_level == "INFO"

    def test_log_level_normalised(self):
        """Test log level is upper-cased."""
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log level is rejected."""
        with pytest.raises(ValidationError, match="Invalid log_level"):
            Settings(log_level="LOUD")

    def test_negative_retries(self):
        """Test retries must be non-negative."""
        with pytest.raises(ValidationError):
            Settings(retries=-1)

    def test_timezone_range(self):
        """Test default timezone must be a real UTC offset."""
        with pytest.raises(ValidationError):
            Settings(default_timezone=15)

    def test_blank_webhook_is_none(self):
        """Test blank webhook URL is treated as unset."""
        assert Settings(slack_webhook_url="  ").slack_webhook_url is None

    def test_retry_config(self):
        """Test retry config is derived from settings."""
        config = Settings(retries=3, min_delay=0.5).retry_config
        assert config.retries == 3
        assert config.min_delay == 0.5


class TestLoadSettings:
    """Test load_settings sources."""

    def test_no_sources(self):
        """Test defaults when no file or env is given."""
        assert load_settings() == Settings()

    def test_from_file(self, config_file):
        """Test values from a YAML file."""
        path = config_file({"dry_run": True, "retries": 5, "region": "ap-southeast-2"})

        settings = load_settings(path)

        assert settings.dry_run is True
        assert settings.retries == 5
        assert settings.region == "ap-southeast-2"

    def test_file_from_env(self, config_file, monkeypatch):
        """Test HAMMERTIME_CONFIG points at the file."""
        path = config_file({"max_workers": 4})
        monkeypatch.setenv("HAMMERTIME_CONFIG", str(path))

        assert load_settings().max_workers == 4

    def test_env_overrides_file(self, config_file, monkeypatch):
        """Test environment variables win over the file."""
        path = config_file({"dry_run": False, "retries": 5})
        monkeypatch.setenv("DRY_RUN", "true")
        monkeypatch.setenv("HAMMERTIME_RETRIES", "2")
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.com/services/xxx")

        settings = load_settings(path)

        assert settings.dry_run is True
        assert settings.retries == 2
        assert settings.slack_webhook_url == "https://hooks.slack.com/services/xxx"

    def test_empty_env_ignored(self, monkeypatch):
        """Test empty environment variables do not override."""
        monkeypatch.setenv("MAX_WORKERS", "")
        assert load_settings().max_workers is None

    def test_missing_file(self, tmp_path):
        """Test explicit missing file raises."""
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        """Test empty YAML file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == Settings()

    def test_non_mapping_file(self, tmp_path):
        """Test YAML list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(path)

    def test_invalid_env_value(self, monkeypatch):
        """Test invalid environment value fails validation."""
        monkeypatch.setenv("MAX_WORKERS", "many")
        with pytest.raises(ValidationError):
            load_settings()


class TestConfigureLogging:
    """Test logging setup."""

    def test_sets_root_level(self):
        """Test root logger level is applied."""
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging("WARNING")
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous)
