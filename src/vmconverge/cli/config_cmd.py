"""Configuration management commands for vmconverge.

This module provides CLI commands for viewing, validating and
initializing the agent configuration file.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import yaml

from vmconverge.cli.context import Context, pass_context
from vmconverge.core.config import ConfigManager, get_default_config_path
from vmconverge.core.exceptions import ConfigurationError
from vmconverge.utils.output import console, print_error, print_info, print_success


def _resolve_path(ctx: Context) -> Path:
    return ctx.config_path or get_default_config_path()


@click.group()
def config() -> None:
    """Manage vmconverge configuration.

    Commands for viewing, validating, and initializing the
    configuration file.
    """


@config.command("show")
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    help="Output format.",
)
@pass_context
def config_show(ctx: Context, fmt: str) -> None:
    """Show the effective configuration (password masked).

    Examples:

        $ vmconverge config show

        $ vmconverge config show --format json
    """
    config_manager = ctx.init_config()
    data = config_manager.to_dict()

    if fmt == "json":
        console.print_json(json.dumps(data, indent=2, default=str))
    else:
        console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))

    console.print(f"\n[dim]Config file: {config_manager.path}[/dim]")


@config.command("validate")
@pass_context
def config_validate(ctx: Context) -> None:
    """Validate the configuration file.

    Examples:

        $ vmconverge config validate
    """
    config_path = _resolve_path(ctx)

    if not config_path.exists():
        print_error(f"Configuration file not found: {config_path}")
        print_info("Run 'vmconverge config init' to create a default config.")
        raise SystemExit(1)

    try:
        config_manager = ConfigManager(config_path)
    except ConfigurationError as e:
        print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e

    cfg = config_manager.config
    print_success(f"Configuration is valid: {config_path}")
    console.print(f"  vCenter: {cfg.vcenter.host or '(not set)'}")
    console.print(f"  Interval: {cfg.agent.interval}s")
    console.print(f"  Test Mode: {'on' if cfg.agent.dry_run else 'off'}")
    console.print(f"  Desired State: {cfg.agent.desired_state}")
    console.print(f"  Log Directory: {cfg.logging.directory}")


@config.command("init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration.",
)
@pass_context
def config_init(ctx: Context, force: bool) -> None:
    """Create an example configuration file.

    The example starts in test mode so that nothing is changed until
    dry_run is switched off.

    Examples:

        $ vmconverge config init

        $ vmconverge config init --force
    """
    config_path = _resolve_path(ctx)

    if config_path.exists() and not force:
        print_error(f"Configuration already exists: {config_path}")
        print_info("Use --force to overwrite.")
        raise SystemExit(1)

    try:
        path = ConfigManager.create_example_config(config_path)
    except OSError as e:
        print_error(f"Failed to create configuration: {e}")
        raise SystemExit(1) from e

    print_success(f"Created configuration at: {path}")
    print_info("Edit this file to set your vCenter endpoint.")


@config.command("path")
@pass_context
def config_path(ctx: Context) -> None:
    """Show the configuration file path.

    Examples:

        $ vmconverge config path
    """
    path = _resolve_path(ctx)
    console.print(str(path))

    if path.exists():
        console.print("[dim](file exists)[/dim]")
    else:
        console.print("[dim](file does not exist)[/dim]")
