"""Main CLI entry point for vmconverge.

This module defines the main CLI group and global options that are
shared across all commands.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click
from rich.console import Console

from vmconverge import __version__
from vmconverge.cli.config_cmd import config
from vmconverge.cli.context import Context, pass_context
from vmconverge.cli.desired import desired
from vmconverge.cli.run import once, run
from vmconverge.core.config import get_default_config_path
from vmconverge.core.exceptions import VmconvergeError
from vmconverge.utils.logging import configure_logging
from vmconverge.utils.output import error_console, print_error


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    Console().print(f"vmconverge version [cyan]{__version__}[/cyan]")
    ctx.exit()


@click.group()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v, -vv for more).",
)
@click.option(
    "--debug",
    is_flag=True,
    expose_value=False,
    help="Show full error tracebacks (read by the entry point).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    envvar="VMCONVERGE_CONFIG",
    help=f"Path to config file (default: {get_default_config_path()}).",
)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@pass_context
def cli(
    ctx: Context,
    verbose: int,
    config_path: str | None,
) -> None:
    """vmconverge - Converge vSphere VM CPU, RAM and power state.

    Compares a desired-state document with the live vCenter inventory
    and reconfigures powered-off VMs whose CPU or RAM differ.

    Examples:

        # Show the parsed desired-state document

        $ vmconverge desired show

        # Run one cycle in test mode

        $ vmconverge once --server vcenter.example.com --dry-run

        # Run the loop every 5 minutes

        $ vmconverge run --server vcenter.example.com --interval 300
    """
    ctx.verbose = verbose

    if config_path:
        ctx.config_path = Path(config_path)

    configure_logging(verbosity=verbose)


cli.add_command(run)
cli.add_command(once)
cli.add_command(desired)
cli.add_command(config)


def main() -> None:
    """Main entry point with error handling."""
    try:
        cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.exceptions.Exit as e:
        sys.exit(e.exit_code)
    except click.Abort:
        error_console.print("\n[dim]Aborted[/dim]")
        sys.exit(130)
    except VmconvergeError as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        error_console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("VMCONVERGE_DEBUG") or "--debug" in sys.argv:
            import traceback

            traceback.print_exc()
        else:
            print_error(f"Unexpected error: {e}")
            error_console.print("[dim]Use --debug for full traceback[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
