"""CLI context for vmconverge.

This module defines the shared context object passed to all CLI commands,
kept separate from the main group to avoid circular imports.
"""

from __future__ import annotations

from pathlib import Path

import click

from vmconverge.core.config import ConfigManager
from vmconverge.core.vsphere import VSphereClient


class Context:
    """CLI context object passed to all commands.

    Attributes:
        config_path: Explicit config file path, if given.
        config: ConfigManager instance.
        client: VSphereClient instance.
        verbose: Verbosity level (0-2).
    """

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.config: ConfigManager | None = None
        self.client: VSphereClient | None = None
        self.verbose: int = 0

    def init_config(self) -> ConfigManager:
        """Initialize configuration manager.

        Returns:
            ConfigManager instance.
        """
        if self.config is None:
            self.config = ConfigManager(self.config_path)
        return self.config

    def init_client(self) -> VSphereClient:
        """Initialize the vCenter client from the current configuration.

        Returns:
            VSphereClient instance.
        """
        if self.client is None:
            config = self.init_config().config
            self.client = VSphereClient(config.vcenter)
        return self.client

    def cleanup(self) -> None:
        """Clean up resources."""
        if self.client:
            self.client.disconnect()


pass_context = click.make_pass_decorator(Context, ensure=True)
