"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from vmconverge.core.config import (
    AgentConfig,
    Config,
    ConfigManager,
    LoggingConfig,
    get_default_config_path,
)
from vmconverge.core.exceptions import ConfigurationError


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self) -> None:
        """Test default logging configuration values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.directory == "logs"
        assert config.retention == 10

    def test_log_level_case_insensitive(self) -> None:
        """Test that log levels are case-insensitive."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Test that invalid log levels raise an error."""
        with pytest.raises(ValueError, match="Invalid log level"):
            LoggingConfig(level="INVALID")

    def test_retention_must_be_positive(self) -> None:
        """Test that at least one log file is kept."""
        with pytest.raises(ValueError):
            LoggingConfig(retention=0)


class TestAgentConfig:
    """Tests for AgentConfig model."""

    def test_default_values(self) -> None:
        """Test defaults: 300s interval, live mode."""
        config = AgentConfig()
        assert config.interval == 300
        assert config.dry_run is False
        assert config.desired_state_path == Path("desired_state.csv")

    def test_negative_interval_rejected(self) -> None:
        """Test that the interval cannot be negative."""
        with pytest.raises(ValueError):
            AgentConfig(interval=-1)


class TestConfig:
    """Tests for Config model."""

    def test_require_server(self) -> None:
        """Test that running without an endpoint is a configuration error."""
        with pytest.raises(ConfigurationError, match="No vCenter endpoint"):
            Config().require_server()

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test endpoint and password from the environment."""
        monkeypatch.setenv("VMCONVERGE_SERVER", "vc.env.local")
        monkeypatch.setenv("VMCONVERGE_PASSWORD", "s3cret")

        config = Config()
        config.apply_environment()

        assert config.require_server() == "vc.env.local"
        assert config.vcenter.password == "s3cret"


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_config(self, temp_config_file: Path) -> None:
        """Test loading configuration from file."""
        manager = ConfigManager(temp_config_file)
        assert manager.config.vcenter.host == "vcenter.example.com"
        assert manager.config.agent.interval == 60

    def test_missing_file_uses_defaults(self, temp_dir: Path) -> None:
        """Test that a missing file yields the default configuration."""
        manager = ConfigManager(temp_dir / "absent.yaml")
        assert manager.config.agent.interval == 300
        assert not (temp_dir / "absent.yaml").exists()

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """Test loading invalid YAML raises error."""
        config_path = temp_dir / "invalid.yaml"
        config_path.write_text("{ invalid yaml content")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigManager(config_path)

    def test_invalid_values(self, temp_dir: Path) -> None:
        """Test that schema violations raise a configuration error."""
        config_path = temp_dir / "bad.yaml"
        config_path.write_text("agent:\n  interval: -5\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager(config_path)

    def test_password_masked(self, temp_dir: Path) -> None:
        """Test that to_dict never exposes the password."""
        config_path = temp_dir / "config.yaml"
        config_path.write_text("vcenter:\n  host: vc\n  password: hunter2\n")

        data = ConfigManager(config_path).to_dict()

        assert data["vcenter"]["password"] == "********"

    def test_create_example_config(self, temp_dir: Path) -> None:
        """Test creating an example configuration file."""
        config_path = temp_dir / "example.yaml"
        result = ConfigManager.create_example_config(config_path)

        assert result == config_path
        manager = ConfigManager(config_path)
        assert manager.config.agent.dry_run is True
        assert manager.config.vcenter.host == "vcenter.example.com"

    def test_default_path_from_env(
        self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path
    ) -> None:
        """Test VMCONVERGE_CONFIG overrides the default location."""
        monkeypatch.setenv("VMCONVERGE_CONFIG", str(temp_dir / "c.yaml"))
        assert get_default_config_path() == temp_dir / "c.yaml"
