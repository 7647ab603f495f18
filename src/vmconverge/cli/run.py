"""Reconciliation commands for vmconverge.

This module provides the long-running ``run`` loop and the single-pass
``once`` command.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from vmconverge.cli.context import Context, pass_context
from vmconverge.core.controller import ReconciliationController
from vmconverge.utils.logging import configure_logging
from vmconverge.utils.output import (
    OutputFormat,
    OutputFormatter,
    print_error,
    print_info,
    print_success,
)

_RECONCILE_OPTIONS = [
    click.option(
        "--server",
        "-s",
        envvar="VMCONVERGE_SERVER",
        default=None,
        help="vCenter endpoint (overrides config).",
    ),
    click.option(
        "--user",
        "-u",
        default=None,
        help="vCenter login user (overrides config).",
    ),
    click.option(
        "--dry-run/--live",
        "dry_run",
        default=None,
        help="Test mode: log intended changes without applying them.",
    ),
    click.option(
        "--desired-state",
        "-d",
        type=click.Path(dir_okay=False),
        default=None,
        help="Desired-state document (CSV or YAML).",
    ),
    click.option(
        "--log-dir",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory for the per-cycle Output/Error log files.",
    ),
]


def reconcile_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by ``run`` and ``once`` that override the config file."""
    for option in reversed(_RECONCILE_OPTIONS):
        func = option(func)
    return func


def build_controller(
    ctx: Context,
    server: str | None,
    user: str | None,
    dry_run: bool | None,
    desired_state: str | None,
    log_dir: str | None,
    interval: int | None = None,
) -> ReconciliationController:
    """Apply command-line overrides and build the controller."""
    config = ctx.init_config().config

    if server:
        config.vcenter.host = server
    if user:
        config.vcenter.username = user
    if dry_run is not None:
        config.agent.dry_run = dry_run
    if desired_state:
        config.agent.desired_state = desired_state
    if log_dir:
        config.logging.directory = log_dir
    if interval is not None:
        config.agent.interval = interval

    config.require_server()
    configure_logging(verbosity=ctx.verbose, log_level=config.logging.level)

    return ReconciliationController(
        client=ctx.init_client(),
        desired_state_path=config.agent.desired_state_path,
        log_dir=config.logging.directory_path,
        interval=config.agent.interval,
        dry_run=config.agent.dry_run,
        retention=config.logging.retention,
        debug_log=ctx.verbose > 0,
    )


@click.command("run")
@reconcile_options
@click.option(
    "--interval",
    "-i",
    type=click.IntRange(min=0),
    default=None,
    help="Seconds to sleep at the start of each cycle (default: 300).",
)
@pass_context
def run(
    ctx: Context,
    server: str | None,
    user: str | None,
    dry_run: bool | None,
    desired_state: str | None,
    log_dir: str | None,
    interval: int | None,
) -> None:
    """Run the reconciliation loop.

    The loop repeats until a cycle records an error, then exits with
    status 1. Restarting it is left to the process supervisor.

    Examples:

        $ vmconverge run --server vcenter.example.com

        $ vmconverge run -s vcenter.example.com --interval 60 --dry-run
    """
    controller = build_controller(
        ctx, server, user, dry_run, desired_state, log_dir, interval=interval
    )

    mode = "test mode" if controller.dry_run else "live mode"
    print_info(
        f"Reconciling every {controller.interval}s in {mode}, logs in {controller.log_dir}"
    )

    try:
        result = controller.run()
    finally:
        ctx.cleanup()

    if result is not None and not result.ok:
        print_error(
            f"Stopped after cycle {controller.cycles} with {result.error_count} error(s)"
        )
        raise SystemExit(1)


@click.command("once")
@reconcile_options
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Summary output format.",
)
@pass_context
def once(
    ctx: Context,
    server: str | None,
    user: str | None,
    dry_run: bool | None,
    desired_state: str | None,
    log_dir: str | None,
    fmt: str,
) -> None:
    """Run a single reconciliation cycle without the initial sleep.

    Examples:

        $ vmconverge once --server vcenter.example.com --dry-run

        $ vmconverge once -s vcenter.example.com -f json
    """
    controller = build_controller(ctx, server, user, dry_run, desired_state, log_dir)

    try:
        result = controller.run_cycle(delay=False)
    finally:
        ctx.cleanup()

    OutputFormatter(OutputFormat(fmt)).print_cycle_result(result)

    if not result.ok:
        print_error(f"Cycle finished with {result.error_count} error(s)")
        raise SystemExit(1)

    print_success(f"Cycle finished, {len(result.changed_vm_names)} VM(s) changed")
