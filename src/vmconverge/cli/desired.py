"""Desired-state commands for vmconverge."""

from __future__ import annotations

import click

from vmconverge.cli.context import Context, pass_context
from vmconverge.core.desired_state import load_desired_state
from vmconverge.core.exceptions import DesiredStateError
from vmconverge.models.desired_state import PowerIntent
from vmconverge.utils.output import OutputFormat, OutputFormatter, print_error, print_warning


@click.group()
def desired() -> None:
    """Inspect the desired-state document."""


@desired.command("show")
@click.option(
    "--file",
    "-d",
    "path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Desired-state document (default: from config).",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format.",
)
@pass_context
def desired_show(ctx: Context, path: str | None, fmt: str) -> None:
    """Parse and print the desired-state document.

    Examples:

        $ vmconverge desired show

        $ vmconverge desired show --file vms.yaml --format json
    """
    if path is None:
        path = str(ctx.init_config().config.agent.desired_state_path)

    try:
        records = load_desired_state(path)
    except DesiredStateError as e:
        print_error(str(e))
        raise SystemExit(1) from e

    OutputFormatter(OutputFormat(fmt)).print_records(records)

    invalid = [r.name for r in records if r.power_intent is PowerIntent.INVALID]
    if invalid and fmt == "table":
        print_warning(f"Invalid start configuration for: {', '.join(invalid)}")
