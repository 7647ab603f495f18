"""Configuration management for vmconverge.

This module provides a Pydantic-based configuration system that supports:
- YAML configuration files
- Environment variable overrides for the endpoint and password
- Default values with validation

The default config location is ~/.vmconverge/config.yaml, which can be
overridden with the VMCONVERGE_CONFIG environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from vmconverge.core.exceptions import ConfigNotFoundError, ConfigurationError

DEFAULT_INTERVAL = 300
DEFAULT_RETENTION = 10


def get_default_config_path() -> Path:
    """Get the default configuration file path.

    The path can be overridden by setting the VMCONVERGE_CONFIG
    environment variable.

    Returns:
        Path to the configuration file.
    """
    env_path = os.environ.get("VMCONVERGE_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".vmconverge" / "config.yaml"


class VCenterConfig(BaseModel):
    """Connection settings for the vCenter endpoint.

    Args:
        host: vCenter hostname or IP address.
        port: HTTPS port.
        username: Login user.
        password: Login password (prefer VMCONVERGE_PASSWORD).
        disable_ssl: Skip certificate verification.
    """

    host: str | None = Field(default=None, description="vCenter endpoint")
    port: Annotated[int, Field(ge=1, le=65535)] = Field(default=443, description="HTTPS port")
    username: str | None = Field(default=None, description="Login user")
    password: str | None = Field(default=None, description="Login password")
    disable_ssl: bool = Field(default=False, description="Skip certificate checks")


class AgentConfig(BaseModel):
    """Reconciliation loop settings.

    Args:
        interval: Seconds to sleep at the top of each cycle.
        dry_run: Log intended changes without mutating VMs.
        desired_state: Path to the desired-state document.
    """

    interval: Annotated[int, Field(ge=0)] = Field(
        default=DEFAULT_INTERVAL, description="Cycle interval in seconds"
    )
    dry_run: bool = Field(default=False, description="Test mode")
    desired_state: str = Field(
        default="desired_state.csv", description="Desired-state document path"
    )

    @property
    def desired_state_path(self) -> Path:
        """Desired-state path, relative paths resolved against the cwd."""
        return Path(self.desired_state).expanduser()


class LoggingConfig(BaseModel):
    """Logging configuration.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR).
        directory: Directory for the per-cycle Output/Error files.
        retention: Number of files kept per category.
    """

    level: str = Field(default="INFO", description="Log level")
    directory: str = Field(default="logs", description="Per-cycle log directory")
    retention: Annotated[int, Field(ge=1)] = Field(
        default=DEFAULT_RETENTION, description="Log files kept per category"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @property
    def directory_path(self) -> Path:
        """Log directory as a Path."""
        return Path(self.directory).expanduser()


class Config(BaseModel):
    """Main configuration model for vmconverge.

    Example config.yaml:
        ```yaml
        vcenter:
          host: vcenter.example.com
          username: administrator@vsphere.local
          disable_ssl: false

        agent:
          interval: 300
          dry_run: false
          desired_state: desired_state.csv

        logging:
          level: INFO
          directory: logs
          retention: 10
        ```
    """

    vcenter: VCenterConfig = Field(default_factory=VCenterConfig, description="vCenter")
    agent: AgentConfig = Field(default_factory=AgentConfig, description="Loop settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging config")

    def apply_environment(self) -> None:
        """Fill the endpoint and password from the environment when set."""
        server = os.environ.get("VMCONVERGE_SERVER")
        if server:
            self.vcenter.host = server
        password = os.environ.get("VMCONVERGE_PASSWORD")
        if password:
            self.vcenter.password = password

    def require_server(self) -> str:
        """Return the vCenter endpoint, raising if it is not configured.

        Raises:
            ConfigurationError: If no endpoint was given.
        """
        if not self.vcenter.host:
            raise ConfigurationError(
                "No vCenter endpoint configured",
                details={"hint": "use --server or VMCONVERGE_SERVER"},
            )
        return self.vcenter.host


class ConfigManager:
    """Loads and writes the vmconverge configuration file.

    Args:
        path: Optional path to config file. Uses default if not specified.

    Attributes:
        path: Path to the configuration file.
        config: The loaded and validated Config object.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        if path is None:
            self.path = get_default_config_path()
        else:
            self.path = Path(path).expanduser()

        self.config = self._load_or_create()
        self.config.apply_environment()

    def _load_or_create(self) -> Config:
        """Load config from file or fall back to defaults."""
        if self.path.exists():
            return self._load()
        return Config()

    def _load(self) -> Config:
        """Load and validate configuration from file.

        Returns:
            Validated Config object.

        Raises:
            ConfigurationError: If the config file is invalid.
            ConfigNotFoundError: If the config file doesn't exist.
        """
        if not self.path.exists():
            raise ConfigNotFoundError(str(self.path))

        try:
            with self.path.open("r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in config file: {e}",
                details={"path": str(self.path)},
            ) from e

        try:
            return Config.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"path": str(self.path)},
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary, masking the password.

        Returns:
            Dictionary representation of the config.
        """
        data = self.config.model_dump(exclude_none=True)
        if "password" in data.get("vcenter", {}):
            data["vcenter"]["password"] = "********"
        return data

    @classmethod
    def create_example_config(cls, path: Path | None = None) -> Path:
        """Create an example configuration file.

        Args:
            path: Optional path for the config. Uses default if not specified.

        Returns:
            Path to the created config file.
        """
        path = get_default_config_path() if path is None else Path(path).expanduser()

        path.parent.mkdir(parents=True, exist_ok=True)

        example_config = {
            "vcenter": {
                "host": "vcenter.example.com",
                "port": 443,
                "username": "administrator@vsphere.local",
                "disable_ssl": False,
            },
            "agent": {
                "interval": DEFAULT_INTERVAL,
                "dry_run": True,
                "desired_state": "desired_state.csv",
            },
            "logging": {
                "level": "INFO",
                "directory": "logs",
                "retention": DEFAULT_RETENTION,
            },
        }

        with path.open("w") as f:
            yaml.safe_dump(example_config, f, default_flow_style=False, sort_keys=False)

        return path
